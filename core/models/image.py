"""Image attachments shared by invoices and business profiles."""

from enum import Enum


class ImageKind(str, Enum):
    """Branding image slots. Each maps to a media folder and a URL column."""

    LOGO = "logo"
    STAMP = "stamp"
    SIGNATURE = "signature"

    @property
    def folder(self) -> str:
        return f"{self.value}s"

    @property
    def column(self) -> str:
        return f"{self.value}_url"
