"""Literal tokens of the patch grammar."""

SENTINEL_TOKEN = "***"

BEGIN_PATCH = SENTINEL_TOKEN + " Begin Patch"
END_PATCH = SENTINEL_TOKEN + " End Patch"
UPDATE_FILE = SENTINEL_TOKEN + " Update File"
MOVE_TO = SENTINEL_TOKEN + " Move to"
DELETE_FILE = SENTINEL_TOKEN + " Delete File"
ADD_FILE = SENTINEL_TOKEN + " Add File"
END_OF_FILE = SENTINEL_TOKEN + " End of File"

# Headers are recognised with or without a space after the colon.
UPDATE_FILE_HEADER = UPDATE_FILE + ":"
MOVE_TO_HEADER = MOVE_TO + ":"
DELETE_FILE_HEADER = DELETE_FILE + ":"
ADD_FILE_HEADER = ADD_FILE + ":"

HUNK_HEADER = "@@"

# Prefixes that end an Add body or an Update body.
ACTION_BOUNDARIES: tuple[str, ...] = (
    END_PATCH,
    UPDATE_FILE_HEADER,
    DELETE_FILE_HEADER,
    ADD_FILE_HEADER,
)

# Prefixes that end a single hunk section.
SECTION_BOUNDARIES: tuple[str, ...] = (HUNK_HEADER,) + ACTION_BOUNDARIES + (END_OF_FILE,)

# Fuzz costs reported by the context matcher.
FUZZ_EXACT = 0
FUZZ_TRAILING_CR = 1
FUZZ_WHITESPACE = 100
FUZZ_EOF_FALLBACK = 10000
