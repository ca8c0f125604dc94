"""Error taxonomy for the scheduling core."""


class MnemoraError(Exception):
    """Base class for all Mnemora errors."""


class InvalidQuality(MnemoraError, ValueError):
    """A quality rating outside the closed range [0, 5]."""

    def __init__(self, quality: object):
        self.quality = quality
        super().__init__(f"Quality must be an integer in [0, 5], got {quality!r}")


class UnknownCard(MnemoraError, LookupError):
    """A card id that the catalog does not know about."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"Unknown card: {card_id}")


class StorageError(MnemoraError):
    """The progress store could not be read or written."""
