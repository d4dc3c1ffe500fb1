# herbtrace/qr_links.py
# Link construction only: the image itself is rendered by the QR service.
from urllib.parse import quote, urlencode

from herbtrace.app_config import Settings

QR_SIZE = "200x200"


def provenance_url(settings: Settings, batch_id: str) -> str:
    return f"{settings.public_base_url}/provenance/{quote(batch_id, safe='')}"


def qr_code_url(settings: Settings, batch_id: str) -> str:
    query = urlencode({"size": QR_SIZE, "data": provenance_url(settings, batch_id)})
    return f"{settings.qr_service_url}?{query}"
