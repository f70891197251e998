"""End-to-end tests for POST /api/find-and-buy with stubbed upstreams."""

import json
import unittest

import httpx
from fastapi.testclient import TestClient

from dealpilot.api.deps import get_http_client
from dealpilot.core.config import Settings
from dealpilot.main import create_app

LLM_URL = "https://llm.test/v1/chat/completions"
BU_URL = "https://bu.test/api/v1/tasks"

OFFERS = [
    {"retailer": "Walmart", "productUrl": "https://walmart.example/p", "packSize": 50, "basePrice": 20},
    {"retailer": "Target", "productUrl": "https://target.example/p", "packSize": 100, "basePrice": 30},
    {"retailer": "Broken", "productUrl": "https://broken.example/p", "packSize": 0, "basePrice": 40},
]


def completion(content):
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


class FakeUpstreams:
    """Routes requests to the stubbed completion/browser-use replies and records them."""

    def __init__(self, llm=None, browser=None):
        self.llm = llm or (lambda r: completion(json.dumps({"items": OFFERS})))
        self.browser = browser or (
            lambda r: httpx.Response(200, json={"result": {"finalPrice": 33.41, "checkoutUrl": "https://target.example/checkout"}})
        )
        self.calls = []

    def __call__(self, request):
        url = str(request.url)
        self.calls.append(url)
        if url == LLM_URL:
            return self.llm(request)
        if url == BU_URL:
            return self.browser(request)
        return httpx.Response(404, text=f"unexpected {url}")


class TestFindAndBuy(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(
            _env_file=None,
            OPENAI_API_KEY="sk-test",
            OPENAI_BASE_URL="https://llm.test/v1",
            BROWSERUSE_API_KEY="bu-test",
            BROWSERUSE_BASE_URL="https://bu.test",
        )
        self.upstreams = FakeUpstreams()
        self.app = create_app(self.settings)

        async def override_client():
            async with httpx.AsyncClient(transport=httpx.MockTransport(self.upstreams)) as client:
                yield client

        self.app.dependency_overrides[get_http_client] = override_client
        self.client = TestClient(self.app)

    def tearDown(self):
        self.app.dependency_overrides.clear()

    def post(self, query="Huggies baby diaper size 4"):
        return self.client.post("/api/find-and-buy", json={"query": query})

    def test_success(self):
        r = self.post()
        self.assertEqual(r.status_code, 200)
        data = r.json()

        self.assertEqual(data["query"], "Huggies baby diaper size 4")
        self.assertEqual([c["retailer"] for c in data["candidates"]], ["Target", "Walmart"])
        self.assertAlmostEqual(data["candidates"][0]["unitPrice"], 0.3)
        self.assertAlmostEqual(data["candidates"][1]["unitPrice"], 0.4)
        self.assertEqual(data["best"], data["candidates"][0])
        self.assertEqual(data["checkout"], {"finalPrice": 33.41, "checkoutUrl": "https://target.example/checkout"})
        self.assertEqual(self.upstreams.calls, [LLM_URL, BU_URL])

    def test_browser_task_targets_best_offer(self):
        seen = {}

        def browser(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"finalPrice": 1, "checkoutUrl": "https://c"})

        self.upstreams.browser = browser
        self.post("Huggies size 4, 124ct")
        instructions = seen["body"]["instructions"]
        self.assertIn("Go to: https://target.example/p", instructions)
        self.assertIn("Huggies size 4, 124ct", instructions)

    def test_missing_or_bad_query(self):
        bodies = [{}, {"query": ""}, {"query": 42}, {"q": "diapers"}, ["query"]]
        for body in bodies:
            with self.subTest(body=body):
                r = self.client.post("/api/find-and-buy", json=body)
                self.assertEqual(r.status_code, 400)
                self.assertEqual(r.json(), {"error": "Missing 'query' string"})

        r = self.client.post("/api/find-and-buy", content="not json", headers={"Content-Type": "application/json"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(self.upstreams.calls, [])

    def test_no_candidates(self):
        for content in ("[]", "I could not find anything", '{"offers": []}'):
            with self.subTest(content=content):
                self.upstreams.llm = lambda r, c=content: completion(c)
                r = self.post()
                self.assertEqual(r.status_code, 502)
                self.assertEqual(r.json(), {"error": "LLM returned no candidates"})

    def test_candidates_without_price(self):
        bad = [{"retailer": "A", "productUrl": "https://a", "packSize": 0, "basePrice": 40}]
        self.upstreams.llm = lambda r: completion(json.dumps(bad))
        r = self.post()
        self.assertEqual(r.status_code, 502)
        self.assertEqual(r.json(), {"error": "Candidates missing price/packSize"})
        self.assertEqual(self.upstreams.calls, [LLM_URL])

    def test_oversized_number_drops_only_that_offer(self):
        content = (
            '[{"retailer": "Huge", "productUrl": "https://h", "basePrice": 10, "packSize": 1' + "0" * 400 + '},'
            ' {"retailer": "Ok", "productUrl": "https://ok", "basePrice": 10, "packSize": 5}]'
        )
        self.upstreams.llm = lambda r: completion(content)
        r = self.post()
        self.assertEqual(r.status_code, 200)
        data = r.json()
        self.assertEqual([c["retailer"] for c in data["candidates"]], ["Ok"])
        self.assertEqual(data["best"]["unitPrice"], 2.0)

    def test_oversized_checkout_total_degrades(self):
        self.upstreams.browser = lambda r: httpx.Response(200, text='{"finalPrice": 1' + "0" * 400 + "}")
        r = self.post()
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["checkout"], {})

    def test_completion_service_failure(self):
        self.upstreams.llm = lambda r: httpx.Response(500, text="upstream down")
        r = self.post()
        self.assertEqual(r.status_code, 502)
        self.assertEqual(r.json(), {"error": "LLM request failed", "details": "upstream down"})

    def test_browser_use_failure_carries_body(self):
        self.upstreams.browser = lambda r: httpx.Response(422, text='{"detail": "field required: task"}')
        r = self.post()
        self.assertEqual(r.status_code, 502)
        self.assertEqual(r.json(), {"error": "Browser-use request failed", "details": '{"detail": "field required: task"}'})

    def test_unreadable_checkout_reply_is_returned_raw(self):
        self.upstreams.browser = lambda r: httpx.Response(200, text="Task queued")
        r = self.post()
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["checkout"], {"raw": "Task queued"})

    def test_unexpected_fault_is_opaque(self):
        def explode(request):
            raise RuntimeError("secret internals")

        self.upstreams.llm = explode
        with self.assertLogs("dealpilot", level="ERROR"):
            r = self.post()
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"error": "Server error"})

    def test_repeated_calls_are_identical(self):
        first = self.post().json()
        second = self.post().json()
        self.assertEqual(first["candidates"], second["candidates"])
        self.assertEqual(first["best"], second["best"])


if __name__ == "__main__":
    unittest.main()
