from app.partnerhub import create_app

app = create_app()
