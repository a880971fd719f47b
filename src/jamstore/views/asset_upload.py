from typing import Optional

from textual.widget import Widget

from jamstore.db.crud import upload_asset
from jamstore.db.errors import AssetPolicyError, DataServiceError
from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)


async def upload_image(node: Widget, path: str) -> Optional[str]:
    """
    Upload a local image and return its url, or None after telling the user why.
    A storage policy rejection gets its own message, distinct from a failed copy.
    """
    path = path.strip()
    if not path:
        node.notify("Enter the path of an image file first.", severity="warning")
        return None
    try:
        url = await upload_asset(path)
    except AssetPolicyError as e:
        _logger.warning(str(e))
        node.notify(f"Upload blocked by storage policy: {e}", severity="error")
        return None
    except DataServiceError as e:
        _logger.error(f"Upload of {path} failed: {e}")
        node.notify("Upload failed. Check the file path and try again.", severity="error")
        return None
    node.notify("Image uploaded.")
    return url
