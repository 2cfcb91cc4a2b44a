# app/core/storage_utils.py
import uuid

from app.core.config import get_settings
from app.core.supabase_client import supabase_admin


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to Supabase Storage and return a public URL.

    If a file already exists at this path, it will be overwritten
    thanks to the 'upsert' option.

    Args:
        path: Full object path inside the bucket.
              Example: "orders/<order_id>/invoice.pdf"
        file_bytes: File content in bytes.
        content_type: MIME type stored with the object.

    Raises:
        Any exception raised by Supabase client if upload fails.
    """
    bucket = get_settings().INVOICE_BUCKET
    storage = supabase_admin().storage.from_(bucket)
    storage.upload(path, file_bytes, {"upsert": "true", "content-type": content_type})
    return storage.get_public_url(path)


def invoice_path(order_id: uuid.UUID) -> str:
    """
    Deterministic object path so re-archiving an invoice overwrites it.
    """
    return f"orders/{order_id}/invoice.pdf"
