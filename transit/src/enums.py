from enum import IntEnum


class AuthEvent(IntEnum):
    INITIAL_SESSION = 1
    SIGNED_IN = 2
    SIGNED_OUT = 3
    USER_UPDATED = 4


class PlatformType(IntEnum):
    OTHER = 1
    WEB = 2
    NATIVE = 3
