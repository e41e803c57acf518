import logging
import sys
import unittest
from pathlib import Path


_TESTS_DIR = Path(__file__).resolve().parent
for _path in (_TESTS_DIR.parent, _TESTS_DIR):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from level_builder import V1, V2, sample_builder  # noqa: E402


def _load(builder):
    from trlevel import parse_level

    logging.getLogger("trlevel.rooms").disabled = True
    try:
        return parse_level(builder.build(), builder.version)
    finally:
        logging.getLogger("trlevel.rooms").disabled = False


class TestPlacedObjects(unittest.TestCase):
    def test_model_and_sprite_instances(self) -> None:
        for version in (V1, V2):
            with self.subTest(version=version):
                level = _load(sample_builder(version))
                self.assertEqual([o.model.id for o in level.model_objects], [5, 6])
                self.assertEqual(len(level.sprite_objects), 1)

    def test_model_object_placement(self) -> None:
        from mathutils import Vector

        obj = _load(sample_builder(V2)).model_objects[0]

        self.assertEqual(obj.model_index, 0)
        self.assertEqual(obj.room, 0)
        self.assertEqual(obj.light_intensity, 1.0)
        p = obj.transform @ Vector((1.0, 0.0, 0.0))
        for got, want in zip(p, (99.0, 0.0, 200.0)):
            self.assertAlmostEqual(got, want, places=4)

    def test_object_light_uses_inverted_scale(self) -> None:
        obj = _load(sample_builder(V1)).model_objects[1]
        self.assertAlmostEqual(obj.light_intensity, 0.0)

    def test_sprite_object(self) -> None:
        sprite_obj, = _load(sample_builder(V1)).sprite_objects

        self.assertEqual(sprite_obj.sequence, 0)
        self.assertEqual(sprite_obj.room, 0)
        self.assertEqual(sprite_obj.frame, 0)
        self.assertEqual(tuple(sprite_obj.position), (10.0, 20.0, 30.0))
        self.assertEqual(sprite_obj.light_intensity, 1.0)

    def test_id_matching_model_and_sequence(self) -> None:
        builder = sample_builder(V1)
        builder.add_sprite_sequence(5, 1, 0)
        level = _load(builder)

        self.assertEqual(len(level.model_objects), 2)
        self.assertEqual([s.sequence for s in level.sprite_objects], [1, 0])

    def test_unmatched_id_is_skipped(self) -> None:
        from trlevel import parse_level

        logging.getLogger("trlevel.rooms").disabled = True
        try:
            with self.assertLogs("trlevel.objects", level=logging.DEBUG) as logs:
                parse_level(sample_builder(V1).build(), V1)
        finally:
            logging.getLogger("trlevel.rooms").disabled = False
        self.assertTrue(any("type id 99" in line for line in logs.output))

    def test_unknown_room(self) -> None:
        from trlevel import LevelReferenceError

        builder = sample_builder(V2)
        builder.add_object(7, 1)
        with self.assertRaises(LevelReferenceError):
            _load(builder)


if __name__ == "__main__":
    unittest.main()
