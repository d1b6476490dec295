"""Tests for the Groq adapter."""

import json

import httpx
import pytest
import pytest_asyncio

from claim_checker.domain.errors import AssessmentUnavailable
from claim_checker.infrastructure.ai.groq_adapter import GroqAdapter, GroqConfig

ASSESSMENT = {
    "verificationScore": 77,
    "confidence": "medium",
    "riskLevel": "low",
    "overallAssessment": "Plausible owner.",
}


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class GroqServer:
    """Minimal Groq API double for httpx.MockTransport."""

    def __init__(self, status_code=200, content=json.dumps(ASSESSMENT), models_status=200):
        self.status_code = status_code
        self.content = content
        self.models_status = models_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/models"):
            return httpx.Response(self.models_status, json={"data": []})
        if request.url.path.endswith("/chat/completions"):
            if self.status_code != 200:
                return httpx.Response(self.status_code, json={"error": {"message": "busy"}})
            return httpx.Response(200, json=completion(self.content))
        return httpx.Response(404)


@pytest.fixture
def server():
    """Create the API double."""
    return GroqServer()


@pytest_asyncio.fixture
async def adapter(server):
    """Create an initialized adapter backed by the API double."""
    groq = GroqAdapter(GroqConfig(api_key="gsk_test_key_123"), transport=httpx.MockTransport(server))
    await groq.initialize()
    yield groq
    await groq.shutdown()


@pytest.mark.asyncio
async def test_initialize_checks_key(adapter, server):
    """Test initialization lists models with the bearer key."""
    assert adapter.is_available
    assert adapter.provider_name == "Groq"
    request = server.requests[0]
    assert request.method == "GET"
    assert request.headers["Authorization"] == "Bearer gsk_test_key_123"


@pytest.mark.asyncio
async def test_initialize_without_key_fails():
    """Test a missing key refuses to start."""
    with pytest.raises(ConnectionError):
        await GroqAdapter(GroqConfig(api_key="")).initialize()


@pytest.mark.asyncio
async def test_initialize_with_rejected_key_fails():
    """Test a key the API rejects refuses to start."""
    groq = GroqAdapter(
        GroqConfig(api_key="gsk_bad_key_1234"),
        transport=httpx.MockTransport(GroqServer(models_status=401)),
    )

    with pytest.raises(ConnectionError):
        await groq.initialize()
    assert not groq.is_available


@pytest.mark.asyncio
async def test_assess_claim(adapter, server, laptop):
    """Test a claim assessment request and its parsed result."""
    assessment = await adapter.assess_claim(laptop, "Black laptop", [("What is the color?", "black")])

    assert assessment.verification_score == 77
    assert assessment.overall_assessment == "Plausible owner."
    body = json.loads(server.requests[-1].content)
    assert body["model"] == "llama-3.3-70b-versatile"
    assert body["response_format"] == {"type": "json_object"}
    assert body["messages"][0]["role"] == "system"
    assert "What is the color?" in body["messages"][1]["content"]


@pytest.mark.asyncio
async def test_batch_match(adapter, server, laptop):
    """Test batch match parsing."""
    server.content = json.dumps({"matches": [{"id": laptop.id, "score": 64, "reasoning": "Same item"}]})

    candidates = await adapter.batch_match(laptop, [laptop])

    assert candidates[0].item_id == laptop.id
    assert candidates[0].score == 64


@pytest.mark.asyncio
async def test_batch_match_without_candidates_skips_call(adapter, server, laptop):
    """Test nothing is sent for an empty pool."""
    sent = len(server.requests)

    assert await adapter.batch_match(laptop, []) == []
    assert len(server.requests) == sent


@pytest.mark.asyncio
async def test_error_status_is_unavailable(adapter, server, laptop):
    """Test a non-success status."""
    server.status_code = 503

    with pytest.raises(AssessmentUnavailable):
        await adapter.assess_claim(laptop, "", [])


@pytest.mark.asyncio
async def test_non_json_content_is_unavailable(adapter, server, laptop):
    """Test model output that is not JSON."""
    server.content = "Sure! Here is my analysis"

    with pytest.raises(AssessmentUnavailable):
        await adapter.assess_claim(laptop, "", [])


@pytest.mark.asyncio
async def test_timeout_is_unavailable(laptop):
    """Test a transport timeout."""
    def handler(request):
        if request.url.path.endswith("/models"):
            return httpx.Response(200, json={"data": []})
        raise httpx.ReadTimeout("timed out", request=request)

    groq = GroqAdapter(GroqConfig(api_key="gsk_test_key_123"), transport=httpx.MockTransport(handler))
    await groq.initialize()

    with pytest.raises(AssessmentUnavailable):
        await groq.assess_claim(laptop, "", [])
    await groq.shutdown()


@pytest.mark.asyncio
async def test_uninitialized_adapter_is_unavailable(laptop):
    """Test calls before initialization."""
    with pytest.raises(AssessmentUnavailable):
        await GroqAdapter(GroqConfig(api_key="gsk_test_key_123")).assess_claim(laptop, "", [])


@pytest.mark.asyncio
async def test_enhance_description(adapter, server):
    """Test the suggestion request uses its own temperature and budget."""
    server.content = json.dumps({
        "enhancedDescription": "Black Dell Latitude, NASA sticker on the lid",
        "suggestedKeywords": ["dell", "nasa sticker"],
        "tips": ["Mention the charger"],
    })

    result = await adapter.enhance_description("Dell laptop", "electronics", "")

    assert result.enhanced_description == "Black Dell Latitude, NASA sticker on the lid"
    assert result.suggested_keywords == ["dell", "nasa sticker"]
    body = json.loads(server.requests[-1].content)
    assert body["temperature"] == 0.5
    assert body["max_tokens"] == 512
    assert "(none provided)" in body["messages"][1]["content"]


@pytest.mark.asyncio
async def test_ping_reports_model(adapter, server):
    """Test the connection test falls back to the configured model name."""
    server.content = json.dumps({"status": "ok"})

    assert await adapter.ping() == "llama-3.3-70b-versatile"
    body = json.loads(server.requests[-1].content)
    assert body["max_tokens"] == 50
    assert body["messages"][1]["content"] == "ping"


@pytest.mark.asyncio
async def test_ping_rejected_key_is_unavailable(adapter, server):
    """Test a failing ping raises like any other request."""
    server.status_code = 401

    with pytest.raises(AssessmentUnavailable):
        await adapter.ping()
