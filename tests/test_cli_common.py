import unittest

from cli.common import parse_defines


class TestCliCommon(unittest.TestCase):
    def test_parse_defines(self) -> None:
        self.assertEqual(
            {"A": "1", "B": "x=y", "C": ""},
            parse_defines(["A=0", "A=1", "B=x=y", "C"]),
        )
        self.assertEqual({}, parse_defines(None))
        with self.assertRaises(ValueError):
            parse_defines(["=oops"])


if __name__ == "__main__":
    unittest.main()
