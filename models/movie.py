import math

DEFAULT_TITLE = "Untitled"
DEFAULT_RATING = 0

FIELDS = ("title", "genre", "rating", "image", "featured", "description", "year", "trailerUrl")
TEXT_FIELDS = ("title", "genre", "image", "description", "trailerUrl")
NUMBER_FIELDS = ("rating", "year")

# BSON stores integers as signed 64-bit
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# create-path order; title only when the strict policy is on
REQUIRED_MESSAGES = {
    "title": "title é obrigatório (string).",
    "genre": "genre é obrigatório (string).",
    "rating": "rating é obrigatório (number).",
    "image": "image é obrigatório (string URL).",
    "description": "description é obrigatório (string).",
    "year": "year é obrigatório (number).",
    "trailerUrl": "trailerUrl é obrigatório (string URL).",
}


class InvalidMovieError(ValueError):
    def __init__(self, field, message):
        self.field = field
        super().__init__(message)


def _to_number(value):
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def round_half_up(number):
    return int(math.floor(number + 0.5))


class Movie:
    """
    A Movie built from a stored document always has all eight fields with the
    right type, whatever the document held.
    """
    def __init__(self, id, title, genre, rating, image, featured, description, year, trailerUrl):
        self.id = Movie.normalize_id(id)
        self.title = Movie.normalize_title(title)
        self.genre = Movie.normalize_text(genre)
        self.rating = Movie.normalize_rating(rating)
        self.image = Movie.normalize_text(image)
        self.featured = Movie.normalize_featured(featured)
        self.description = Movie.normalize_text(description)
        self.year = Movie.normalize_year(year)
        self.trailerUrl = Movie.normalize_text(trailerUrl)

    @staticmethod
    def normalize_id(id):
        if id is None:
            return ""
        return str(id)

    @staticmethod
    def normalize_title(title):
        if not isinstance(title, str) or not title.strip():
            return DEFAULT_TITLE
        return title

    @staticmethod
    def normalize_text(value):
        if not isinstance(value, str):
            return ""
        return value

    @staticmethod
    def normalize_rating(rating):
        number = _to_number(rating)
        if number is None or number < 0:
            return DEFAULT_RATING
        if number.is_integer():
            return int(number)
        return number

    @staticmethod
    def normalize_featured(featured):
        return featured is True

    @staticmethod
    def normalize_year(year):
        number = _to_number(year)
        if number is None or not number.is_integer() or number <= 0:
            return None
        return int(number)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "genre": self.genre,
            "rating": self.rating,
            "image": self.image,
            "featured": self.featured,
            "description": self.description,
            "year": self.year,
            "trailerUrl": self.trailerUrl,
        }

    @classmethod
    def from_document(cls, doc):
        return cls(id=doc.get("_id", doc.get("id")),
                   title=doc.get("title"),
                   genre=doc.get("genre"),
                   rating=doc.get("rating"),
                   image=doc.get("image"),
                   featured=doc.get("featured"),
                   description=doc.get("description"),
                   year=doc.get("year"),
                   trailerUrl=doc.get("trailerUrl"))


def normalize_movie(doc: dict) -> dict:
    return Movie.from_document(doc).to_dict()


def validate_field(name, value):
    """Check one writable field and return the value as it should be stored."""
    if name in TEXT_FIELDS:
        if not isinstance(value, str) or not value:
            raise InvalidMovieError(name, REQUIRED_MESSAGES[name])
        return value

    if name in NUMBER_FIELDS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidMovieError(name, REQUIRED_MESSAGES[name])
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidMovieError(name, REQUIRED_MESSAGES[name])
        number = value if isinstance(value, int) else round_half_up(value)
        if not INT64_MIN <= number <= INT64_MAX:
            raise InvalidMovieError(name, REQUIRED_MESSAGES[name])
        return number

    if name == "featured":
        return bool(value)

    raise InvalidMovieError(name, f"Campo desconhecido: {name}.")


def validate_new_movie(payload: dict, require_title: bool = True) -> dict:
    if not isinstance(payload, dict):
        raise InvalidMovieError(None, "Corpo da requisição deve ser um objeto JSON.")

    data = {}
    for name in REQUIRED_MESSAGES:
        if name == "title" and not require_title and payload.get("title") is None:
            continue
        data[name] = validate_field(name, payload.get(name))

    data["featured"] = validate_field("featured", payload.get("featured", False))
    return data


def validate_movie_changes(payload: dict) -> dict:
    """Only the fields present in the payload are checked and returned."""
    if not isinstance(payload, dict):
        raise InvalidMovieError(None, "Corpo da requisição deve ser um objeto JSON.")

    return {name: validate_field(name, payload[name]) for name in FIELDS if name in payload}
