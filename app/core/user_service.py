import logging

from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.concurrency import run_in_threadpool

from app.core.exceptions import AuthError, ConflictError, StoreError, ValidationError
from app.core.security import decode_token, hash_password, issue_token, verify_password
from app.models.user import LoginResponse, UserOut

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "user"


def _text(payload: dict, name: str) -> str | None:
    value = payload.get(name)
    if isinstance(value, str) and value:
        return value
    return None


def _user_out(doc: dict) -> UserOut:
    return UserOut(
        id=str(doc["_id"]),
        name=doc.get("name", ""),
        email=doc.get("email", ""),
        role=doc.get("role") or DEFAULT_ROLE,
    )


class UserService:
    def __init__(self, collection, jwt_secret: str, jwt_expires_seconds: int = 3600):
        self.collection = collection
        self.jwt_secret = jwt_secret
        self.jwt_expires_seconds = jwt_expires_seconds

    async def register(self, payload: dict) -> UserOut:
        if not isinstance(payload, dict):
            payload = {}

        name, email, password = _text(payload, "name"), _text(payload, "email"), _text(payload, "password")
        if not name or not email or not password:
            raise ValidationError("Campos obrigatórios: name, email, password.")

        role = payload.get("role")
        doc = {
            "name": name,
            "email": email,
            "password": await run_in_threadpool(hash_password, password),
            "role": role if isinstance(role, str) and role else DEFAULT_ROLE,
        }

        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError("E-mail já cadastrado.") from e
        except PyMongoError as e:
            logger.exception("Registration failed for %s", email)
            raise StoreError("Erro ao registrar usuário.") from e

        doc["_id"] = result.inserted_id
        logger.info("Registered user %s", result.inserted_id)
        return _user_out(doc)

    async def login(self, payload: dict) -> LoginResponse:
        if not isinstance(payload, dict):
            payload = {}

        email, password = _text(payload, "email"), _text(payload, "password")
        if not email or not password:
            raise ValidationError("Campos obrigatórios: email, password.")

        try:
            doc = await self.collection.find_one({"email": email})
        except PyMongoError as e:
            logger.exception("Login lookup failed for %s", email)
            raise StoreError("Erro ao efetuar login.") from e

        if doc is None:
            raise AuthError("Credenciais inválidas.")

        if not await run_in_threadpool(verify_password, password, doc.get("password", "")):
            raise AuthError("Credenciais inválidas.")

        user = _user_out(doc)
        token = issue_token(user.model_dump(), self.jwt_secret, self.jwt_expires_seconds)
        return LoginResponse(token=token, user=user)

    def authenticate(self, token: str) -> UserOut:
        claims = decode_token(token, self.jwt_secret)
        try:
            return UserOut(
                id=claims["id"],
                name=claims["name"],
                email=claims["email"],
                role=claims["role"],
            )
        except KeyError as e:
            raise AuthError("Token inválido.") from e
