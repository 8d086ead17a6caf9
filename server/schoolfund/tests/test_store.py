import unittest
from unittest import mock

from google.api_core import exceptions as gcp_exceptions

from schoolfund.store import (
    DocumentNotFoundError,
    Filter,
    FirestoreDocumentStore,
    InMemoryDocumentStore,
    where,
)


class InMemoryDocumentStoreTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryDocumentStore()

    def test_add_get_update_delete(self):
        doc_id = self.store.add("campaigns", {"name": "Lab", "tags": ["a"]})
        self.assertEqual(self.store.get("campaigns", doc_id), {"name": "Lab", "tags": ["a"]})

        self.store.update("campaigns", doc_id, {"name": "Library"})
        self.assertEqual(self.store.get("campaigns", doc_id)["name"], "Library")

        self.store.delete("campaigns", doc_id)
        self.assertIsNone(self.store.get("campaigns", doc_id))

    def test_update_missing_document(self):
        with self.assertRaises(DocumentNotFoundError):
            self.store.update("campaigns", "nope", {"name": "x"})

    def test_returned_documents_are_copies(self):
        self.store.set("schools", "s1", {"challenges": ["water"]})
        self.store.get("schools", "s1")["challenges"].append("power")
        self.assertEqual(self.store.get("schools", "s1"), {"challenges": ["water"]})

    def test_query_filters_orders_and_pages(self):
        for i, (school, created) in enumerate([("a", "3"), ("a", "1"), ("b", "2"), ("a", "2")]):
            self.store.set("updates", f"u{i}", {"schoolId": school, "createdAt": created})
        self.store.set("updates", "undated", {"schoolId": "a"})

        docs = self.store.query(
            "updates", [where("schoolId", "a")], order_by="createdAt", descending=True
        )
        self.assertEqual([doc_id for doc_id, _ in docs], ["u0", "u3", "u1"])

        page = self.store.query(
            "updates", [where("schoolId", "a")], order_by="createdAt", limit=1, offset=1
        )
        self.assertEqual([doc_id for doc_id, _ in page], ["u3"])
        self.assertEqual(self.store.count("updates", [where("schoolId", "a")]), 4)

    def test_only_equality_filters(self):
        self.store.set("campaigns", "c1", {"goal": 10})
        with self.assertRaises(ValueError):
            self.store.query("campaigns", [Filter("goal", ">", 5)])


class FirestoreDocumentStoreTests(unittest.TestCase):
    def setUp(self):
        self.db = mock.MagicMock()
        self.store = FirestoreDocumentStore(client=self.db)

    def test_get_missing_document(self):
        self.db.collection.return_value.document.return_value.get.return_value.exists = False
        self.assertIsNone(self.store.get("schools", "nope"))

    def test_update_missing_document(self):
        self.db.collection.return_value.document.return_value.update.side_effect = (
            gcp_exceptions.NotFound("missing")
        )
        with self.assertRaises(DocumentNotFoundError):
            self.store.update("schools", "nope", {"city": "x"})

    def test_count(self):
        aggregate = mock.MagicMock()
        aggregate.value = 7
        query = self.db.collection.return_value.where.return_value
        query.count.return_value.get.return_value = [[aggregate]]
        self.assertEqual(self.store.count("campaigns", [where("status", "active")]), 7)
        query.count.assert_called_once_with(alias="total")


if __name__ == "__main__":
    unittest.main()
