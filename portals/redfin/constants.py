"""Redfin site constants."""

BASE_URL = "https://www.redfin.com"

# Metro Atlanta city search pages
DEFAULT_CITY_PATHS = [
    "/city/12766/GA/Marietta",
    "/city/10991/GA/Kennesaw",
    "/city/17232/GA/Roswell",
    "/city/438/GA/Alpharetta",
    "/city/33985/GA/Milton",
    "/city/17553/GA/Sandy-Springs",
    "/city/22699/GA/Dunwoody",
    "/city/3026/GA/Buckhead",
    "/city/35852/GA/Brookhaven",
    "/city/33537/GA/Johns-Creek",
    "/city/20749/GA/Woodstock",
    "/city/26520/GA/Vinings",
]

# Source modes: one query per city, or one per city and search keyword
SOURCE_MODE_CITY = "city"
SOURCE_MODE_KEYWORDS = "keywords"
SOURCE_MODES = (SOURCE_MODE_CITY, SOURCE_MODE_KEYWORDS)

# Listing-remarks keyword filter appended to a city search URL
KEYWORD_FILTER_PATH = "/filter/remarks="

# Search results page
CARD_CONTAINER_SELECTOR = ".HomeViews .HomeCardsContainer, .NearbyResults .HomeCardsContainer"
CARD_SELECTOR = '[data-rf-test-name="mapHomeCard"]'
CARD_LINK_SELECTOR = ".MapHomeCardReact.MapHomeCard > a"
CARD_IMAGE_SELECTOR = ".bp-Homecard__Photo--image"
CARD_PRICE_SELECTOR = ".bp-Homecard__Price--value"
CARD_ADDRESS_SELECTOR = ".bp-Homecard__Address"
CARD_BEDS_SELECTOR = ".bp-Homecard__Stats--beds"
CARD_BATHS_SELECTOR = ".bp-Homecard__Stats--baths"
CARD_SQFT_SELECTOR = ".bp-Homecard__LockedStat--value"
CARD_REMARKS_SELECTOR = ".ListingRemarks, .marketingRemarks, [data-rf-test-id='listingRemarks']"
PAGE_NUMBER_SELECTOR = ".PageNumbers .ButtonLabel"

# Detail page remarks, most specific first
REMARKS_SELECTORS = [
    ".remarksContainer .remarks",
    "#marketingRemarks-preview .remarks",
    ".marketingRemarks .remarks",
    "[data-rf-test-id='listingRemarks'] .remarks",
    "[data-rf-test-id='listingRemarks']",
    ".remarksContainer",
]
