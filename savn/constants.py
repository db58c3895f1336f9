import struct


# Entry kind tags (one byte after the path terminator)
TAG_REGULAR_FILE = 1
TAG_EXECUTABLE_FILE = 2
TAG_SOFT_SYMLINK = 3

# Path terminator; an empty path in its place marks end-of-archive
PATH_TERMINATOR = b"\x00"
END_SENTINEL = b"\x00"

# Contents length: u32 little-endian
LENGTH_STRUCT = struct.Struct("<I")
MAX_CONTENTS_LEN = 0xFFFFFFFF

DEFAULT_SUFFIX = ".savn"
TEMP_PREFIX = ".savn-write-"
