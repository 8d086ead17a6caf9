import unittest

from schoolfund.pagination import page_offset, paginate


class PaginationTests(unittest.TestCase):
    def test_pages_is_ceiling(self):
        for total in range(0, 26):
            for limit in range(1, 8):
                pages = paginate(total, 1, limit)["pages"]
                self.assertGreaterEqual(pages * limit, total)
                if total:
                    self.assertLess((pages - 1) * limit, total)
                else:
                    self.assertEqual(pages, 0)

    def test_block(self):
        self.assertEqual(
            paginate(21, page=3, limit=10),
            {"total": 21, "page": 3, "limit": 10, "pages": 3},
        )

    def test_offset(self):
        self.assertEqual(page_offset(1, 10), 0)
        self.assertEqual(page_offset(3, 10), 20)

    def test_invalid(self):
        with self.assertRaises(ValueError):
            paginate(10, page=1, limit=0)
        with self.assertRaises(ValueError):
            paginate(10, page=0, limit=10)


if __name__ == "__main__":
    unittest.main()
