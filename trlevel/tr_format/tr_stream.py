"""Little-endian cursor over the raw level bytes."""

import struct

import numpy as np

from ..errors import FormatError


_STRUCT_CACHE = {}


def _get_struct(fmt):
    st = _STRUCT_CACHE.get(fmt)
    if st is None:
        st = struct.Struct("<" + fmt)
        _STRUCT_CACHE[fmt] = st
    return st


class LevelStream:
    """Sequential reader over an in-memory level file.

    All reads are bounds-checked; running past the end of the data raises
    FormatError instead of returning short or zero-filled values.
    """

    __slots__ = ('data', 'pos')

    def __init__(self, data, offset=0):
        self.data = data
        self.pos = offset

    def __len__(self):
        return len(self.data)

    def tell(self):
        return self.pos

    def seek(self, offset):
        if offset < 0 or offset > len(self.data):
            raise FormatError(
                f"Seek to offset {offset} outside file of {len(self.data)} bytes"
            )
        self.pos = offset

    def skip(self, size):
        self.seek(self.pos + size)

    def read(self, fmt):
        """Unpack `fmt` (without byte-order prefix) and advance."""
        st = _get_struct(fmt)
        try:
            values = st.unpack_from(self.data, self.pos)
        except struct.error:
            raise FormatError(
                f"Truncated level data: need {st.size} bytes at offset {self.pos}, "
                f"file is {len(self.data)} bytes"
            ) from None
        self.pos += st.size
        return values

    def read_u8(self):
        return self.read("B")[0]

    def read_i16(self):
        return self.read("h")[0]

    def read_u16(self):
        return self.read("H")[0]

    def read_i32(self):
        return self.read("i")[0]

    def read_u32(self):
        return self.read("I")[0]

    def read_count(self, count_format):
        return self.read(count_format)[0]

    def read_array(self, dtype, count):
        """Bulk-read `count` elements of `dtype` as a read-only numpy array."""
        dtype = np.dtype(dtype).newbyteorder("<")
        size = dtype.itemsize * count
        if count < 0 or self.pos + size > len(self.data):
            raise FormatError(
                f"Truncated level data: need {size} bytes at offset {self.pos}, "
                f"file is {len(self.data)} bytes"
            )
        if count == 0:
            return np.zeros(0, dtype=dtype)
        values = np.frombuffer(self.data, dtype=dtype, count=count, offset=self.pos)
        self.pos += size
        return values
