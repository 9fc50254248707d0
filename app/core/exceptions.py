class APIError(Exception):
    code = "API_ERROR"
    status_code = 500
    message = "Erro interno do servidor."

    def __init__(self, message: str | None = None, details=None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

class ValidationError(APIError):
    code = "VALIDATION_ERROR"
    status_code = 400
    message = "Requisição inválida."

class NotFoundError(APIError):
    code = "NOT_FOUND"
    status_code = 404
    message = "Filme não encontrado."

class ConflictError(APIError):
    code = "CONFLICT"
    status_code = 409
    message = "E-mail já cadastrado."

class AuthError(APIError):
    code = "AUTH_ERROR"
    status_code = 401
    message = "Credenciais inválidas."

class StoreError(APIError):
    code = "STORE_ERROR"
    status_code = 500
    message = "Erro ao acessar o banco de dados."
