import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from ideaforge.core.config import get_settings
from ideaforge.models.credit_transaction import CreditTransactionRecord
from ideaforge.models.document import DocumentRecord
from ideaforge.models.idea import IdeaRecord
from ideaforge.models.user import UserRecord

DOCUMENT_MODELS = [
    UserRecord,
    IdeaRecord,
    DocumentRecord,
    CreditTransactionRecord,
]


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true)."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


async def init_db() -> None:
    settings = get_settings()
    # tz_aware keeps stored timestamps comparable with the domain's UTC datetimes
    kwargs = {"tz_aware": True}
    if _use_tls(settings.mongodb_uri):
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsDisableOCSPEndpointCheck"] = True
    client = AsyncIOMotorClient(settings.mongodb_uri, **kwargs)
    database = client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
