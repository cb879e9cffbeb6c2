"""
Ghana regions and district codes used for region scoping and digital addresses.

Digital address format: XX-AAA(A)-UUUU
- XX   district code; the first character is the region code
- AAA  area code (3-4 digits)
- UUUU unique address (3-4 digits)
"""
from __future__ import annotations

ADDRESS_PART_MIN_LENGTH = 3
ADDRESS_PART_MAX_LENGTH = 4

# region code -> (region name, ((district code, district name), ...))
GHANA_REGIONS: dict[str, tuple[str, tuple[tuple[str, str], ...]]] = {
    "G": (
        "Greater Accra Region",
        (
            ("GA", "Accra Metropolitan"),
            ("G2", "Ayawaso Central"),
            ("G3", "Ayawaso North"),
            ("G4", "Ayawaso West"),
            ("G5", "Ayawaso East"),
            ("G6", "Krowor"),
            ("G7", "Ablekuma Central"),
            ("G8", "Ablekuma North"),
            ("G9", "Ablekuma West"),
            ("GB", "Ashaiman"),
            ("GC", "Ga Central"),
            ("GD", "Ga East"),
            ("GE", "Ga North"),
            ("GF", "Ga South"),
            ("GG", "Ga West"),
            ("GH", "La Dade-Kotopon"),
            ("GI", "La Nkwantanang Madina"),
            ("GJ", "Ledzokuku"),
            ("GK", "Korle Klottey"),
            ("GL", "Okaikwei North"),
            ("GM", "Weija Gbawe"),
            ("GN", "Ada East"),
            ("GO", "Ada West"),
            ("GP", "Ningo Prampram"),
            ("GQ", "Shai Osudoku"),
            ("GT", "Tema Metropolitan"),
            ("GU", "Tema West"),
            ("GV", "Kpone Katamanso"),
        ),
    ),
    "A": (
        "Ashanti Region",
        (
            ("AK", "Kumasi Metropolitan"),
            ("A2", "Adansi North"),
            ("A3", "Adansi South"),
            ("A4", "Afigya Kwabre North"),
            ("A5", "Afigya Kwabre South"),
            ("A6", "Ahafo Ano North"),
            ("A7", "Ahafo Ano South East"),
            ("A8", "Ahafo Ano South West"),
            ("A9", "Amansie Central"),
            ("AA", "Amansie South"),
            ("AB", "Amansie West"),
            ("AC", "Asante Akim Central"),
            ("AD", "Asante Akim North"),
            ("AE", "Asante Akim South"),
            ("AF", "Asokore Mampong"),
            ("AG", "Asokwa"),
            ("AH", "Atwima Kwanwoma"),
            ("AI", "Atwima Mponua"),
            ("AJ", "Atwima Nwabiagya North"),
            ("AL", "Atwima Nwabiagya South"),
            ("AM", "Bekwai"),
            ("AN", "Bosome Freho"),
            ("AO", "Obuasi Municipal"),
            ("AP", "Obuasi East"),
            ("AQ", "Bosomtwe"),
            ("AR", "Ejisu"),
            ("AS", "Ejura Sekyedumase"),
            ("AT", "Juaben"),
            ("AU", "Kwabre East"),
            ("AV", "Kwadaso"),
            ("AW", "Mampong"),
            ("AX", "Nhyiaeso"),
            ("AY", "Offinso North"),
            ("AZ", "Offinso South"),
            ("A1", "Oforikrom"),
            ("B1", "Old Tafo"),
            ("B2", "Sekyere Afram Plains"),
            ("B3", "Sekyere Central"),
            ("B4", "Sekyere East"),
            ("B5", "Sekyere Kumawu"),
            ("B6", "Sekyere South"),
            ("B7", "Suame"),
        ),
    ),
    "C": (
        "Central Region",
        (
            ("CC", "Cape Coast Metropolitan"),
            ("C2", "Abura Asebu Kwamankese"),
            ("C3", "Agona East"),
            ("C4", "Agona West"),
            ("C5", "Ajumako Enyan Essiam"),
            ("C6", "Asikuma Odoben Brakwa"),
            ("C7", "Assin Central"),
            ("C8", "Assin North"),
            ("C9", "Assin South"),
            ("CA", "Awutu Senya East"),
            ("CB", "Awutu Senya West"),
            ("CD", "Effutu"),
            ("CE", "Ekumfi"),
            ("CF", "Gomoa Central"),
            ("CG", "Gomoa East"),
            ("CH", "Gomoa West"),
            ("CI", "Hemang Lower Denkyira"),
            ("CJ", "Komenda Edina Eguafo Abirem"),
            ("CK", "Mfantsiman"),
            ("CL", "Twifo Atti Morkwa"),
            ("CM", "Twifo Hemang Lower Denkyira"),
            ("CN", "Upper Denkyira East"),
            ("CO", "Upper Denkyira West"),
        ),
    ),
    "E": (
        "Eastern Region",
        (
            ("EK", "Koforidua (New Juaben South)"),
            ("E2", "Abuakwa North"),
            ("E3", "Abuakwa South"),
            ("E4", "Achiase"),
            ("E5", "Akuapem North"),
            ("E6", "Akuapem South"),
            ("E7", "Akyemansa"),
            ("E8", "Asene Manso Akroso"),
            ("E9", "Asuogyaman"),
            ("EA", "Atiwa East"),
            ("EB", "Atiwa West"),
            ("EC", "Ayensuano"),
            ("ED", "Birim Central"),
            ("EE", "Birim North"),
            ("EF", "Birim South"),
            ("EG", "Denkyembour"),
            ("EH", "East Akim"),
            ("EI", "Fanteakwa North"),
            ("EJ", "Fanteakwa South"),
            ("EL", "Kwaebibirem"),
            ("EM", "Kwahu Afram Plains North"),
            ("EN", "Kwahu Afram Plains South"),
            ("EO", "Kwahu East"),
            ("EP", "Kwahu South"),
            ("EQ", "Kwahu West"),
            ("ER", "Lower Manya Krobo"),
            ("ES", "New Juaben North"),
            ("ET", "Nsawam Adoagyiri"),
            ("EU", "Okere"),
            ("EV", "Suhum"),
            ("EW", "Upper Manya Krobo"),
            ("EX", "Upper West Akim"),
            ("EY", "West Akim"),
            ("EZ", "Yilo Krobo"),
        ),
    ),
    "W": (
        "Western Region",
        (
            ("WS", "Sekondi-Takoradi Metropolitan"),
            ("W2", "Ahanta West"),
            ("W3", "Ellembelle"),
            ("W4", "Jomoro"),
            ("W5", "Mpohor"),
            ("W6", "Nzema East"),
            ("W7", "Prestea Huni Valley"),
            ("W8", "Shama"),
            ("W9", "Tarkwa Nsuaem"),
            ("WA", "Wassa Amenfi Central"),
            ("WB", "Wassa Amenfi East"),
            ("WC", "Wassa Amenfi West"),
            ("WD", "Wassa East"),
            ("WE", "Effia Kwesimintsim"),
        ),
    ),
    "V": (
        "Volta Region",
        (
            ("VH", "Ho Municipal"),
            ("V2", "Adaklu"),
            ("V3", "Afadjato South"),
            ("V4", "Agortime Ziope"),
            ("V5", "Akatsi North"),
            ("V6", "Akatsi South"),
            ("V7", "Anloga"),
            ("V8", "Central Tongu"),
            ("V9", "Ho West"),
            ("VA", "Hohoe"),
            ("VB", "Keta"),
            ("VC", "Ketu North"),
            ("VD", "Ketu South"),
            ("VE", "Kpando"),
            ("VF", "North Dayi"),
            ("VG", "North Tongu"),
            ("VI", "South Dayi"),
            ("VJ", "South Tongu"),
        ),
    ),
    "N": (
        "Northern Region",
        (
            ("NT", "Tamale Metropolitan"),
            ("N2", "Gushegu"),
            ("N3", "Karaga"),
            ("N4", "Kpandai"),
            ("N5", "Kumbungu"),
            ("N6", "Mion"),
            ("N7", "Nanton"),
            ("N8", "Nanumba North"),
            ("N9", "Nanumba South"),
            ("NA", "Saboba"),
            ("NB", "Sagnarigu"),
            ("NC", "Savelugu"),
            ("ND", "Tatale Sanguli"),
            ("NE", "Tolon"),
            ("NF", "Yendi"),
            ("NG", "Zabzugu"),
        ),
    ),
    "U": (
        "Upper East Region",
        (
            ("UB", "Bolgatanga Municipal"),
            ("U2", "Bawku Municipal"),
            ("U3", "Bawku West"),
            ("U4", "Binduri"),
            ("U5", "Bolgatanga East"),
            ("U6", "Bongo"),
            ("U7", "Builsa North"),
            ("U8", "Builsa South"),
            ("U9", "Garu"),
            ("UA", "Kassena Nankana East"),
            ("UC", "Kassena Nankana West"),
            ("UD", "Nabdam"),
            ("UE", "Pusiga"),
            ("UF", "Talensi"),
            ("UG", "Tempane"),
        ),
    ),
    "X": (
        "Upper West Region",
        (
            ("XW", "Wa Municipal"),
            ("X2", "Daffiama Bussie Issa"),
            ("X3", "Jirapa"),
            ("X4", "Lambussie Karni"),
            ("X5", "Lawra"),
            ("X6", "Nadowli Kaleo"),
            ("X7", "Nandom"),
            ("X8", "Sissala East"),
            ("X9", "Sissala West"),
            ("XA", "Wa East"),
            ("XB", "Wa West"),
        ),
    ),
    "B": (
        "Bono Region",
        (
            ("BS", "Sunyani Municipal"),
            ("B2", "Berekum East"),
            ("B3", "Berekum West"),
            ("B4", "Dormaa Central"),
            ("B5", "Dormaa East"),
            ("B6", "Dormaa West"),
            ("B7", "Jaman North"),
            ("B8", "Jaman South"),
            ("B9", "Sunyani West"),
            ("BA", "Tain"),
            ("BB", "Wenchi"),
            ("BC", "Banda"),
        ),
    ),
    "F": (
        "Ahafo Region",
        (
            ("FG", "Goaso Municipal"),
            ("F2", "Asunafo North"),
            ("F3", "Asunafo South"),
            ("F4", "Asutifi North"),
            ("F5", "Asutifi South"),
            ("F6", "Tano North"),
            ("F7", "Tano South"),
        ),
    ),
    "H": (
        "Bono East Region",
        (
            ("HT", "Techiman Municipal"),
            ("H2", "Atebubu Amantin"),
            ("H3", "Kintampo North"),
            ("H4", "Kintampo South"),
            ("H5", "Nkoranza North"),
            ("H6", "Nkoranza South"),
            ("H7", "Pru East"),
            ("H8", "Pru West"),
            ("H9", "Sene East"),
            ("HA", "Sene West"),
            ("HB", "Techiman North"),
        ),
    ),
    "O": (
        "Oti Region",
        (
            ("OD", "Dambai"),
            ("O2", "Biakoye"),
            ("O3", "Guan"),
            ("O4", "Jasikan"),
            ("O5", "Kadjebi"),
            ("O6", "Krachi East"),
            ("O7", "Krachi Nchumuru"),
            ("O8", "Krachi West"),
            ("O9", "Nkwanta North"),
            ("OA", "Nkwanta South"),
        ),
    ),
    "S": (
        "Savannah Region",
        (
            ("SD", "Damongo"),
            ("S2", "Bole"),
            ("S3", "Central Gonja"),
            ("S4", "East Gonja"),
            ("S5", "North East Gonja"),
            ("S6", "North Gonja"),
            ("S7", "Sawla Tuna Kalba"),
            ("S8", "West Gonja"),
        ),
    ),
    "J": (
        "North East Region",
        (
            ("JN", "Nalerigu (East Mamprusi)"),
            ("J2", "Bunkpurugu Nyankpanduri"),
            ("J3", "Chereponi"),
            ("J4", "Mamprugu Moagduri"),
            ("J5", "West Mamprusi"),
            ("J6", "Yunyoo Nasuan"),
        ),
    ),
    "R": (
        "Western North Region",
        (
            ("RS", "Sefwi Wiawso"),
            ("R2", "Aowin"),
            ("R3", "Bia East"),
            ("R4", "Bia West"),
            ("R5", "Bibiani Anhwiaso Bekwai"),
            ("R6", "Bodi"),
            ("R7", "Juaboso"),
            ("R8", "Sefwi Akontombra"),
            ("R9", "Suaman"),
        ),
    ),
}

REGION_CODES: tuple[str, ...] = tuple(GHANA_REGIONS)


def is_valid_region(code: str | None) -> bool:
    return bool(code) and code in GHANA_REGIONS


def region_name(code: str) -> str:
    entry = GHANA_REGIONS.get(code)
    return entry[0] if entry else code


def districts(region_code: str) -> tuple[tuple[str, str], ...]:
    entry = GHANA_REGIONS.get(region_code)
    return entry[1] if entry else ()


def is_valid_district(region_code: str | None, district_code: str | None) -> bool:
    if not region_code or not district_code:
        return False
    return any(code == district_code for code, _ in districts(region_code))


def parse_address_code(value: str | None) -> tuple[str, str, str]:
    """Split "GA-123-4567" into (prefix, area, unique); missing parts are empty."""
    parts = (value or "").split("-")
    parts += [""] * (3 - len(parts))
    return parts[0], parts[1], parts[2]


def normalize_address_part(value: str) -> str:
    digits = "".join(ch for ch in value if ch.isdigit())
    return digits[:ADDRESS_PART_MAX_LENGTH]


def build_address_code(prefix: str, area: str, unique: str) -> str:
    if not prefix:
        return ""
    return f"{prefix}-{normalize_address_part(area)}-{normalize_address_part(unique)}"


def is_address_code_complete(value: str | None) -> bool:
    prefix, area, unique = parse_address_code(value)
    return (
        len(prefix) >= 2
        and len(area) >= ADDRESS_PART_MIN_LENGTH
        and len(unique) >= ADDRESS_PART_MIN_LENGTH
    )


def regions_payload() -> list[dict]:
    return [
        {
            "code": code,
            "name": name,
            "districts": [{"code": d_code, "name": d_name} for d_code, d_name in dists],
        }
        for code, (name, dists) in GHANA_REGIONS.items()
    ]
