"""Writes small synthetic V1 / V2 level files for the tests.

Only the sections the loader decodes get content; every other counted
section is written empty, so the layout matches the format profiles.
"""

import struct

V1 = "v1"
V2 = "v2"

VERSION_WORDS = {V1: 0x20, V2: 0x2D}


def _u16s(words):
    return struct.pack(f"<{len(words)}H", *[w & 0xFFFF for w in words])


def mesh_bytes(vertices, intensities=None, normals=None,
               tex_quads=(), tex_tris=(), col_quads=(), col_tris=()):
    """Mesh body. Pass `normals` for an externally lit mesh, else `intensities`."""
    out = bytearray(10)   # bounding sphere
    out += struct.pack("<h", len(vertices))
    for v in vertices:
        out += struct.pack("<hhh", *v)
    if normals is not None:
        out += struct.pack("<h", len(normals))
        for n in normals:
            out += struct.pack("<hhh", *n)
    else:
        if intensities is None:
            intensities = [0] * len(vertices)
        out += struct.pack("<h", -len(intensities))
        for i in intensities:
            out += struct.pack("<h", i)
    for polys in (tex_quads, tex_tris, col_quads, col_tris):
        out += struct.pack("<h", len(polys))
        for p in polys:
            out += _u16s(p)
    return bytes(out)


def room_bytes(version, x=0, z=0, vertices=(), quads=(), tris=(), static_sprites=(),
               num_portals=0, sectors=(0, 0), ambient=0, lights=(),
               static_meshes=(), alternate_room=0xFFFF, flags=0):
    """One room record.

    vertices: (x, y, z, light); quads/tris: vertex indices + texture;
    lights: (x, y, z, intensity, falloff);
    static_meshes: (x, y, z, orientation, light, static id).
    """
    v2 = version == V2
    data = bytearray()
    data += struct.pack("<H", len(vertices))
    for vx, vy, vz, light in vertices:
        data += struct.pack("<hhhH", vx, vy, vz, light)
        if v2:
            data += struct.pack("<HH", 0, light)
    for polys in (quads, tris):
        data += struct.pack("<H", len(polys))
        for p in polys:
            data += _u16s(p)
    data += struct.pack("<H", len(static_sprites))
    for vertex, sprite in static_sprites:
        data += struct.pack("<HH", vertex, sprite)

    out = bytearray(struct.pack("<iiii", x, z, 0, -1024))
    out += struct.pack("<I", len(data) // 2)
    out += data
    out += struct.pack("<H", num_portals) + bytes(32 * num_portals)
    out += struct.pack("<HH", *sectors) + bytes(8 * sectors[0] * sectors[1])
    out += struct.pack("<h", ambient)
    if v2:
        out += struct.pack("<hH", ambient, 0)
    out += struct.pack("<H", len(lights))
    for lx, ly, lz, intensity, falloff in lights:
        out += struct.pack("<iiih", lx, ly, lz, intensity)
        if v2:
            out += struct.pack("<h", intensity)
        out += struct.pack("<i", falloff)
        if v2:
            out += struct.pack("<i", falloff)
    out += struct.pack("<H", len(static_meshes))
    for sx, sy, sz, orientation, light, static_id in static_meshes:
        out += struct.pack("<iiiHH", sx, sy, sz, orientation, light)
        if v2:
            out += struct.pack("<H", light)
        out += struct.pack("<H", static_id)
    out += struct.pack("<HH", alternate_room, flags)
    return bytes(out)


def frame_words(version, translation, rotations, bbox=(0, 0, 0, 0, 0, 0)):
    """Raw frame words. `rotations` holds canonical codes, (w0,) or (w0, w1)."""
    header = list(bbox) + [t & 0xFFFF for t in translation]
    if version == V1:
        words = header + [len(rotations)]
        for code in rotations:
            assert len(code) == 2, "V1 frames only carry Euler angle sets"
            words += [code[1], code[0]]
        return words
    words = list(header)
    for code in rotations:
        words += list(code)
    return words


def euler_code(x, y, z):
    """Canonical two-word Euler rotation code of three 10-bit angles."""
    return (((x & 0x3FF) << 4) | ((y >> 6) & 0xF),
            ((y & 0x3F) << 10) | (z & 0x3FF))


class LevelBuilder:
    """Collects section payloads and serializes a complete level file."""

    def __init__(self, version=V1):
        self.version = version
        self.version_word = VERSION_WORDS[version]
        self.palette = bytes(768)
        self.texpages8 = []
        self.texpages16 = []
        self.rooms = []
        self.mesh_data = b""
        self.mesh_pointers = []
        self.animations = []
        self.anim_state_changes = []
        self.anim_ranges = []
        self.anim_commands = []
        self.bone_data = []
        self.anim_frames = []
        self.models = []
        self.static_meshes = []
        self.texinfos = []
        self.sprites = []
        self.sprite_sequences = []
        self.texanim_words = []
        self.objects = []

    # -- Record helpers ----------------------------------------------------

    def add_texpage(self, fill=0):
        self.texpages8.append(bytes([fill]) * 65536)
        self.texpages16.append(struct.pack("<H", 0x8000 | fill) * 65536)

    def add_mesh(self, body):
        """Append a mesh body and a pointer to it. Returns the mesh index."""
        self.mesh_pointers.append(len(self.mesh_data))
        self.mesh_data += body
        return len(self.mesh_pointers) - 1

    def add_texinfo(self, page=0, alpha_mode=0, coords=((0, 0), (0, 0), (0, 0), (0, 0))):
        raw = bytearray(struct.pack("<HH", alpha_mode, page))
        for x, y in coords:
            raw += struct.pack("<BBBB", 0, x, 0, y)
        self.texinfos.append(bytes(raw))
        return len(self.texinfos) - 1

    def add_animation(self, frame_offset, ticks_per_frame, first_tick, last_tick,
                      frame_size=0, state_id=0, next_anim=0, next_anim_tick=0):
        """`frame_offset` is in words into anim_frames."""
        self.animations.append(struct.pack(
            "<IBBH8sHHHHHHHH",
            frame_offset * 2, ticks_per_frame, frame_size, state_id, bytes(8),
            first_tick, last_tick, next_anim, next_anim_tick, 0, 0, 0, 0))
        return len(self.animations) - 1

    def add_frames(self, frames):
        """Append raw frame word lists. Returns the word offset of the first."""
        offset = len(self.anim_frames)
        for words in frames:
            self.anim_frames.extend(words)
        return offset

    def add_model(self, model_id, num_meshes, first_mesh, bone_offset=0, animation=0xFFFF):
        self.models.append(struct.pack("<IHHIIH", model_id, num_meshes, first_mesh,
                                       bone_offset, 0, animation))

    def add_bones(self, ops):
        """`ops` is a list of (op, x, y, z). Returns the dword offset of the first."""
        offset = len(self.bone_data)
        for op in ops:
            self.bone_data.extend(op)
        return offset

    def add_static_mesh(self, static_id, mesh, flags=0):
        self.static_meshes.append(struct.pack("<IH", static_id, mesh) + bytes(24)
                                  + struct.pack("<H", flags))

    def add_sprite(self, page, x, y, w, h, left, top, right, bottom):
        self.sprites.append(struct.pack("<HBBHHhhhh", page, x, y, w, h,
                                        left, top, right, bottom))
        return len(self.sprites) - 1

    def add_sprite_sequence(self, seq_id, count, first):
        self.sprite_sequences.append(struct.pack("<IhH", seq_id, -count, first))

    def add_texanim_chains(self, chains):
        self.texanim_words = [len(chains)]
        for chain in chains:
            self.texanim_words += [len(chain) - 1] + list(chain)

    def add_object(self, type_id, room, x=0, y=0, z=0, orientation=0, light=0, flags=0):
        raw = struct.pack("<HHiiiHH", type_id, room, x, y, z, orientation, light)
        if self.version == V2:
            raw += struct.pack("<H", light)
        self.objects.append(raw + struct.pack("<H", flags))

    def add_room(self, **kwargs):
        self.rooms.append(room_bytes(self.version, **kwargs))
        return len(self.rooms) - 1

    # -- Serialization -----------------------------------------------------

    def build(self):
        v2 = self.version == V2
        out = bytearray(struct.pack("<I", self.version_word))

        if v2:
            out += self.palette
            out += bytes(1024)
        out += struct.pack("<I", len(self.texpages8)) + b"".join(self.texpages8)
        if v2:
            out += b"".join(self.texpages16)
        out += struct.pack("<I", 0)

        out += struct.pack("<H", len(self.rooms)) + b"".join(self.rooms)

        def counted(items, payload):
            return struct.pack("<I", len(items)) + payload

        out += counted([], b"")                                    # floor data
        out += struct.pack("<I", len(self.mesh_data) // 2) + self.mesh_data
        out += counted(self.mesh_pointers,
                       struct.pack(f"<{len(self.mesh_pointers)}I", *self.mesh_pointers))
        out += counted(self.animations, b"".join(self.animations))
        out += counted(self.anim_state_changes, b"".join(self.anim_state_changes))
        out += counted(self.anim_ranges, b"".join(self.anim_ranges))
        out += counted(self.anim_commands, _u16s(self.anim_commands))
        out += counted(self.bone_data,
                       struct.pack(f"<{len(self.bone_data)}i", *self.bone_data))
        out += counted(self.anim_frames, _u16s(self.anim_frames))
        out += counted(self.models, b"".join(self.models))
        out += counted(self.static_meshes, b"".join(self.static_meshes))
        out += counted(self.texinfos, b"".join(self.texinfos))
        out += counted(self.sprites, b"".join(self.sprites))
        out += counted(self.sprite_sequences, b"".join(self.sprite_sequences))
        out += counted([], b"")                                    # cameras
        out += counted([], b"")                                    # sound sources
        out += counted([], b"")                                    # boxes (zones follow, derived)
        out += counted([], b"")                                    # overlaps
        out += counted(self.texanim_words, _u16s(self.texanim_words))
        out += counted(self.objects, b"".join(self.objects))
        out += bytes(32 * 256)                                     # light map

        if not v2:
            out += self.palette
        out += struct.pack("<H", 0)                                # cinematic frames
        out += struct.pack("<H", 0)                                # demo data
        out += bytes(370 * 2 if v2 else 256 * 2)                   # sound map
        out += counted([], b"")                                    # sound details
        if not v2:
            out += counted([], b"")                                # samples
        out += counted([], b"")                                    # sample indices
        return bytes(out)


# Words per V2 frame of the sample animation: header + Euler (2) + Y axis (1)
SAMPLE_STRIDE = 9 + 3
SAMPLE_TRANSLATIONS = [(0, 0, 0), (30, 0, 0), (60, -12, 6)]


def sample_builder(version=V1):
    """A small but complete level touching every decoded section.

    Texinfos:  256 (quad corners), 257 <-> 258 animation ring
    Meshes:    0 internally lit square, 1 externally lit triangle
    Models:    id 5 (meshes 0-1, animation 0), id 6 (mesh 1, no animation)
    Statics:   id 10 -> mesh 0, id 11 -> mesh 1
    Sprites:   sprite 0, sequence id 7
    Room 0:    one ring-textured quad, one plain tri, two lights, two
               static placements (the externally lit one is dropped)
    Objects:   model 5, sequence 7, unmatched 99, model 6
    """
    b = LevelBuilder(version)
    palette = bytearray(768)
    palette[3:6] = bytes((63, 32, 1))
    b.palette = bytes(palette)
    b.add_texpage(fill=1)

    b.add_texinfo(coords=((0, 0), (255, 0), (255, 255), (0, 255)))
    b.add_texinfo(alpha_mode=1)
    b.add_texinfo(alpha_mode=1)
    b.add_texanim_chains([[1, 2]])

    b.add_mesh(mesh_bytes(
        [(0, 0, 0), (100, 0, 0), (100, 100, 0), (0, 100, 0)],
        intensities=[0, 8191, 4096, 0],
        tex_quads=[(0, 1, 2, 3, 0x8000)],
        col_tris=[(0, 1, 2, 0x0101)],
    ))
    b.add_mesh(mesh_bytes(
        [(0, 0, 0), (0, 50, 0), (50, 0, 0)],
        normals=[(0, 0, 16384), (0, 0, 16384), (0, 0, 16384)],
        tex_tris=[(0, 1, 2, 1)],
    ))
    b.add_static_mesh(10, 0)
    b.add_static_mesh(11, 1)

    frames = []
    for i, translation in enumerate(SAMPLE_TRANSLATIONS):
        if version == V1:
            rotations = [euler_code(0, 0, 0), euler_code(0, 256 * i, 0)]
        else:
            rotations = [euler_code(0, 0, 0), (0x8000 | (256 * i),)]
        frames.append(frame_words(version, translation, rotations))
    offset = b.add_frames(frames)
    b.add_animation(offset, ticks_per_frame=1, first_tick=0, last_tick=2,
                    frame_size=0 if version == V1 else SAMPLE_STRIDE)

    bones = b.add_bones([(0, 0, 100, 0)])
    b.add_model(5, 2, 0, bone_offset=bones, animation=0)
    b.add_model(6, 1, 1)

    b.add_sprite(0, 10, 20, 256, 256, -50, 100, 50, 0)
    b.add_sprite_sequence(7, 1, 0)

    b.add_room(
        x=1024, z=2048,
        vertices=[(0, 0, 0, 0), (1024, 0, 0, 8191), (1024, -256, 1024, 0), (0, 0, 1024, 0)],
        quads=[(0, 1, 2, 3, 1)],
        tris=[(0, 1, 3, 0)],
        static_sprites=[(2, 0)],
        num_portals=1,
        sectors=(2, 3),
        ambient=4096,
        lights=[(0, -512, 0, -100, 5000), (100, 0, 100, 0, 1000)],
        static_meshes=[(512, 0, 512, 0x4000, 0, 10), (0, 0, 0, 0, 0, 11)],
    )

    b.add_object(5, 0, x=100, y=0, z=200, orientation=0x8000, light=0xFFFF)
    b.add_object(7, 0, x=10, y=20, z=30, light=0)
    b.add_object(99, 0)
    b.add_object(6, 0, light=8191)
    return b
