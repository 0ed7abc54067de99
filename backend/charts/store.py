from __future__ import annotations

import logging
import uuid
from collections import OrderedDict

logger = logging.getLogger(__name__)


class ChartStore:
    """Keeps recently rendered charts so reply messages can point at them by URL.

    LINE only fetches images over https, so without a public base URL no image
    message is produced and replies carry text only.
    """

    def __init__(self, public_base_url: str = "", max_entries: int = 200) -> None:
        self.public_base_url = public_base_url.rstrip("/")
        self.max_entries = max(1, max_entries)
        self._charts: OrderedDict[str, bytes] = OrderedDict()

    def __len__(self) -> int:
        return len(self._charts)

    def put(self, png: bytes) -> str:
        chart_id = uuid.uuid4().hex
        self._charts[chart_id] = png
        while len(self._charts) > self.max_entries:
            self._charts.popitem(last=False)
        return chart_id

    def get(self, chart_id: str) -> bytes | None:
        return self._charts.get(chart_id)

    @property
    def enabled(self) -> bool:
        return bool(self.public_base_url)

    def image_message(self, png: bytes) -> dict[str, str] | None:
        if not self.enabled:
            logger.debug("No public base URL; chart left out of the reply")
            return None
        url = f"{self.public_base_url}/charts/{self.put(png)}.png"
        return {"type": "image", "originalContentUrl": url, "previewImageUrl": url}
