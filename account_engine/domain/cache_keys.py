"""Cache key helpers shared by the engine and the read services."""

ACCOUNT_CACHE_TTL_SECONDS = 60 * 60
COMPANY_CACHE_TTL_SECONDS = 24 * 60 * 60


def account_key(account_id: int) -> str:
    return f"user:id:{account_id}"


def company_key(company_id: int) -> str:
    return f"company:id:{company_id}"


def company_code_key(code: str) -> str:
    return f"company:code:{code}"
