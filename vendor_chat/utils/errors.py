"""Exception taxonomy for the vendor chat backend."""


class VendorChatError(Exception):
    """Base class for all errors raised by this package."""


class ModerationError(VendorChatError):
    """The moderation classifier could not be reached or answered garbage."""


class RetrievalError(VendorChatError):
    """Embedding, index connection or index query failed."""


class BackendStreamError(VendorChatError):
    """The language-model backend failed before or during streaming."""


class PersistenceError(VendorChatError):
    """Session store read/write failure."""


class CreateError(PersistenceError):
    pass


class UpdateError(PersistenceError):
    pass


class StreamOrderError(VendorChatError):
    """A stream event would break the start/delta/end ordering of a channel."""


class WebSearchError(VendorChatError):
    pass


class SessionNotFoundError(UpdateError):
    pass
