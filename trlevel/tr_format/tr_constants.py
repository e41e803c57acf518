"""Constants for the level binary format."""

# Texture pages are fixed-size square atlases
TEXPAGE_SIZE = 256
TEXPAGE_PIXELS = TEXPAGE_SIZE * TEXPAGE_SIZE

# Palette-derived texinfos occupy [0, PALETTE_TEXINFO_COUNT)
PALETTE_SIZE = 256
PALETTE_TEXINFO_COUNT = 256
PALETTE_PAGE_INDEX = 0
# 6-bit VGA palette components are scaled up to 8 bits
PALETTE_COMPONENT_SCALE = 4

# Polygon texture field masks
TEXTURED_POLY_MASK = 0x7FFF     # high bit is a double-sided tag
COLORED_POLY_MASK = 0x00FF

# Mesh header: bounding sphere (3 x int16 centre + int32 radius)
MESH_BOUNDING_SPHERE_SIZE = 10

# Baked light intensity: 13-bit raw value, 0 = full brightness
LIGHT_RAW_MAX = 8191.0
LIGHT_FULL_BRIGHT_SENTINEL = 0xFFFF

# Orientation words keep a quarter-turn count in the top two bits
ORIENTATION_QUARTER_SHIFT = 14
ORIENTATION_QUARTER_MASK = 0x03

# Rooms are lit by at most this many point lights
MAX_ROOM_LIGHTS = 8

# "No reference" marker in 16-bit index fields
NO_INDEX_16 = 0xFFFF

# Animation frame layout (canonical record)
FRAME_BBOX_WORDS = 6
FRAME_TRANSLATION_WORDS = 3
FRAME_HEADER_WORDS = FRAME_BBOX_WORDS + FRAME_TRANSLATION_WORDS
# Angle-set frames store their set count right after the header
FRAME_ANGLE_SET_COUNT_INDEX = FRAME_HEADER_WORDS

# Rotation codes
ROTATION_TAG_MASK = 0xC000
ROTATION_TAG_EULER = 0x0000
ROTATION_TAG_X = 0x4000
ROTATION_TAG_Y = 0x8000
ROTATION_TAG_Z = 0xC000
ROTATION_ANGLE_MASK = 0x03FF
# 10-bit angle covers a full turn
ROTATION_UNITS_PER_TURN = 1024

# Skeleton bone operation flags
BONE_OP_POP = 0x01
BONE_OP_PUSH = 0x02
BONE_RECORD_DWORDS = 4

# Animation playback
TICKS_PER_SECOND = 30
