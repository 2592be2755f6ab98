import json
import tempfile
import unittest
from pathlib import Path

import httpx

from domain_data import collect_records, collect_records_by_ids, filter_records
from record_source import (
    SAMPLE_RECORDS,
    RecordApiClient,
    StaticRecordSource,
    record_from_dict,
)


class FilterRecordsTests(unittest.TestCase):
    def test_search_matches_name_or_tag(self) -> None:
        by_name = filter_records(SAMPLE_RECORDS, search="notebook")
        by_tag = filter_records(SAMPLE_RECORDS, search="mob-cad")
        self.assertEqual([r.id for r in by_name], ["ASSET001"])
        self.assertEqual([r.id for r in by_tag], ["ASSET003"])

    def test_category_and_location(self) -> None:
        records = filter_records(SAMPLE_RECORDS, category="Furniture", location="Meeting room")
        self.assertEqual([r.id for r in records], ["ASSET003", "ASSET007", "ASSET008"])

    def test_name_pattern(self) -> None:
        records = filter_records(SAMPLE_RECORDS, name_pattern=r"^(mouse|keyboard)")
        self.assertEqual([r.id for r in records], ["ASSET005", "ASSET006"])

    def test_invalid_name_pattern(self) -> None:
        with self.assertRaises(ValueError):
            filter_records(SAMPLE_RECORDS, name_pattern="(")


class CollectRecordsTests(unittest.TestCase):
    def test_pagination(self) -> None:
        source = StaticRecordSource()
        page, total = collect_records(source, page=2, limit=4)
        self.assertEqual(total, 9)
        self.assertEqual([r.id for r in page], ["ASSET005", "ASSET006", "ASSET007", "ASSET008"])

    def test_without_limit_returns_all(self) -> None:
        records, total = collect_records(StaticRecordSource(), category="Tools")
        self.assertEqual(total, 1)
        self.assertEqual(records[0].name, "Manual pallet jack")

    def test_by_ids_keeps_requested_order(self) -> None:
        records = collect_records_by_ids(StaticRecordSource(), ["ASSET003", "nope", "ASSET001"])
        self.assertEqual([r.id for r in records], ["ASSET003", "ASSET001"])


class RecordSourceTests(unittest.TestCase):
    def test_record_from_dict_accepts_mapping_attributes(self) -> None:
        record = record_from_dict(
            {"id": 7, "tag": "T-7", "name": " Drill ", "attributes": {"serial": "SN1"}}
        )
        self.assertEqual(record.id, "7")
        self.assertEqual(record.name, "Drill")
        self.assertEqual(record.attribute("serial"), "SN1")

    def test_record_from_dict_accepts_pair_list(self) -> None:
        record = record_from_dict(
            {"id": "a", "attributes": [{"key": "serial", "value": "SN1"}, {"key": ""}]}
        )
        self.assertEqual(record.attribute("serial"), "SN1")
        self.assertEqual(len(record.attributes), 1)

    def test_record_from_dict_requires_id(self) -> None:
        with self.assertRaises(ValueError):
            record_from_dict({"name": "Orphan"})

    def test_static_source_from_json_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "records.json"
            path.write_text(
                json.dumps({"items": [{"id": "a", "tag": "T-A", "name": "A"}]}),
                encoding="utf-8",
            )
            source = StaticRecordSource.from_json_file(path)
        self.assertEqual([r.tag for r in source.list_records()], ["T-A"])

    def test_api_client_paginates(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            page = int(request.url.params["page"])
            items = {
                1: [{"id": "a", "tag": "T-A", "name": "A"}, {"id": "b", "tag": "T-B", "name": "B"}],
                2: [{"id": "c", "tag": "T-C", "name": "C"}],
            }[page]
            return httpx.Response(200, json={"items": items, "total": 3})

        client = RecordApiClient(
            "https://records.example/api/items/",
            token="secret",
            page_size=2,
            transport=httpx.MockTransport(handler),
        )
        records = client.list_records()
        self.assertEqual([r.id for r in records], ["a", "b", "c"])
        self.assertEqual(len(requests), 2)
        self.assertEqual(requests[0].headers["Authorization"], "Bearer secret")

    def test_api_client_raises_on_error_status(self) -> None:
        client = RecordApiClient(
            "https://records.example/api/items",
            transport=httpx.MockTransport(lambda request: httpx.Response(503, text="down")),
        )
        with self.assertRaises(RuntimeError):
            client.list_records()

    def test_api_client_requires_url(self) -> None:
        with self.assertRaises(RuntimeError):
            RecordApiClient("")
