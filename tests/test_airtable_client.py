import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from bot_core.errors import CollaboratorError, ConfigurationMissing
from clients.airtable import (
    AirtableClient,
    all_of,
    decode_page,
    decode_record,
    equals_ignore_case,
    is_after_today,
    is_checked,
)


def test_formula_helpers_escape_values():
    assert equals_ignore_case("aetherId", "aeth-xx12") == 'UPPER({aetherId}) = "AETH-XX12"'
    assert equals_ignore_case("EventCode", 'a"b\\') == 'UPPER({EventCode}) = "A\\"B\\\\"'
    assert all_of(is_checked("Published")) == "{Published}"
    assert all_of(is_checked("Published"), is_after_today("Date")) == (
        "AND({Published}, IS_AFTER({Date}, TODAY()))"
    )


def test_decode_record_and_page():
    record = decode_record({"id": "rec1", "fields": {"Title": "T"}, "createdTime": "2025-01-01T00:00:00.000Z"})
    assert record.get("Title") == "T"
    assert record.created_time.startswith("2025")

    records, offset = decode_page({"records": [{"id": "rec2"}], "offset": "itr1"})
    assert [item.id for item in records] == ["rec2"]
    assert offset == "itr1"


@pytest.mark.parametrize(
    "payload",
    [None, [], {"records": "nope"}, {"records": [{"fields": {}}]}, {"records": [{"id": "r", "fields": []}]},
     {"records": [], "offset": 3}],
)
def test_decode_page_rejects_unexpected_shapes(payload):
    with pytest.raises(CollaboratorError):
        decode_page(payload)


@pytest_asyncio.fixture
async def airtable_server():
    seen = []

    async def list_records(request):
        seen.append(dict(request.query))
        if request.headers.get("Authorization") != "Bearer key":
            return web.json_response({"error": "AUTHENTICATION_REQUIRED"}, status=401)
        if request.match_info["table"] == "tblBroken":
            return web.Response(text="<html>oops</html>", content_type="text/html")
        if request.query.get("offset") == "page2":
            return web.json_response({"records": [{"id": "rec2", "fields": {"n": 2}}]})
        return web.json_response({"records": [{"id": "rec1", "fields": {"n": 1}}], "offset": "page2"})

    async def create_records(request):
        body = await request.json()
        seen.append(body)
        fields = body["records"][0]["fields"]
        return web.json_response({"records": [{"id": "recNew", "fields": fields}]})

    app = web.Application()
    app.router.add_get("/v0/appBase/{table}", list_records)
    app.router.add_post("/v0/appBase/{table}", create_records)
    server = TestServer(app)
    await server.start_server()
    yield server, seen
    await server.close()


@pytest.mark.asyncio
async def test_find_all_follows_pagination_and_sort(airtable_server):
    server, seen = airtable_server
    client = AirtableClient("key", "appBase", api_url=str(server.make_url("/v0")))
    try:
        records = await client.find_all("tblEvents", formula="{Published}", sort=[("Date", "desc")])
    finally:
        await client.close()

    assert [record.id for record in records] == ["rec1", "rec2"]
    assert seen[0]["filterByFormula"] == "{Published}"
    assert seen[0]["sort[0][field]"] == "Date"
    assert seen[0]["sort[0][direction]"] == "desc"
    assert seen[1]["offset"] == "page2"


@pytest.mark.asyncio
async def test_create_record_sends_typecast(airtable_server):
    server, seen = airtable_server
    client = AirtableClient("key", "appBase", api_url=str(server.make_url("/v0")))
    try:
        record = await client.create_record("tblSubmissions", {"Submission": "hi"})
    finally:
        await client.close()

    assert record.id == "recNew"
    assert seen[0]["typecast"] is True


@pytest.mark.asyncio
async def test_http_errors_and_non_json_become_collaborator_errors(airtable_server):
    server, _ = airtable_server
    bad_key = AirtableClient("wrong", "appBase", api_url=str(server.make_url("/v0")))
    broken = AirtableClient("key", "appBase", api_url=str(server.make_url("/v0")))
    try:
        with pytest.raises(CollaboratorError, match="HTTP 401"):
            await bad_key.find_one("tblMembers", '{aetherId} = "X"')
        with pytest.raises(CollaboratorError, match="not JSON"):
            await broken.find_all("tblBroken")
    finally:
        await bad_key.close()
        await broken.close()


@pytest.mark.asyncio
async def test_missing_credentials_raise_before_any_request():
    client = AirtableClient("", "appBase")
    assert not client.configured
    with pytest.raises(ConfigurationMissing):
        await client.find_all("tblEvents")
    await client.close()
