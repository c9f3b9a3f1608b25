"""Internal constants shared across the library."""

DEFAULT_WS_URL = "ws://localhost:8765"
DEFAULT_GEOMETRY_BASE_URL = "https://raw.githubusercontent.com/bacinger/f1-circuits/master/circuits"
VIRTUAL_CANVAS_SIZE = 1000.0

# Upper clamp of a lap-fraction scalar; keeps it strictly below 100.
MAX_POSITION_SCALAR = 99.999

# ------------------------------------------------------------------
# Circuit identifier → geometry locator (``<country>-<first year>``)
# ------------------------------------------------------------------

CIRCUIT_LOCATORS: dict[str, str] = {
    # Europe
    "monaco": "mc-1929",
    "monte-carlo": "mc-1929",
    "monza": "it-1922",
    "imola": "it-1953",
    "mugello": "it-1914",
    "silverstone": "gb-1948",
    "spa": "be-1925",
    "spa-francorchamps": "be-1925",
    "paul-ricard": "fr-1969",
    "le-castellet": "fr-1969",
    "magny-cours": "fr-1960",
    "madrid": "es-2026",
    "hockenheim": "de-1932",
    "hungaroring": "hu-1986",
    "budapest": "hu-1986",
    "nurburgring": "de-1927",
    "nuerburgring": "de-1927",
    "nurburg": "de-1927",
    "barcelona": "es-1991",
    "catalunya": "es-1991",
    "spielberg": "at-1969",
    "red-bull-ring": "at-1969",
    "zandvoort": "nl-1948",
    "estoril": "pt-1972",
    "portimao": "pt-2008",
    "sochi": "ru-2014",
    # Asia
    "suzuka": "jp-1962",
    "marina-bay": "sg-2008",
    "singapore": "sg-2008",
    "shanghai": "cn-2004",
    "bahrain": "bh-2002",
    "sakhir": "bh-2002",
    "abu-dhabi": "ae-2009",
    "yas-marina": "ae-2009",
    "jeddah": "sa-2021",
    "losail": "qa-2004",
    "lusail": "qa-2004",
    "sepang": "my-1999",
    "istanbul": "tr-2005",
    "baku": "az-2016",
    # Americas
    "austin": "us-2012",
    "miami": "us-2022",
    "mexico-city": "mx-1962",
    "montreal": "ca-1978",
    "interlagos": "br-1940",
    "sao-paulo": "br-1940",
    "jacarepagua": "br-1977",
    "las-vegas": "us-2023",
    "indianapolis": "us-1909",
    "dix": "us-1956",
    "buenos-aires": "ar-1952",
    # Oceania / Africa
    "melbourne": "au-1953",
    "albert-park": "au-1953",
    "johannesburg": "za-1961",
}

# ------------------------------------------------------------------
# Lap length in kilometres (approximate)
# ------------------------------------------------------------------

DEFAULT_LAP_LENGTH_KM = 5.0

LAP_LENGTHS_KM: dict[str, float] = {
    "japan": 5.48,
    "suzuka": 5.48,
    "monaco": 3.32,
    "monte-carlo": 3.32,
    "monza": 5.79,
    "spa": 7.0,
    "silverstone": 5.89,
}
