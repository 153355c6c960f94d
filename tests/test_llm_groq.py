import json

import httpx
import pytest

from brandprofile.config import settings
from brandprofile.exceptions import ClassificationError, InvalidEnhancementError
from brandprofile.models.schemas import ButtonSnapshot, HeuristicBrandingProfile, LogoCandidate
from brandprofile.services.classifier import ClassificationRequest
from brandprofile.services.llm_groq import GroqClassifier, GroqLLMError, build_user_prompt, call_groq_llm


def completion(content):
    body = content if isinstance(content, str) else json.dumps(content)
    return httpx.Response(200, json={"choices": [{"message": {"content": body}}]})

def client_for(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture(autouse=True)
def groq_settings(monkeypatch):
    monkeypatch.setattr(settings, "GROQ_API_KEY", "test-key")
    monkeypatch.setattr(settings, "LLM_RETRIES", 1)

@pytest.fixture
def request_():
    return ClassificationRequest(
        profile=HeuristicBrandingProfile(),
        buttons=[ButtonSnapshot(index=0, text="Get Started", background="#0A66FF",
                                original_background_color="rgb(10, 102, 255)")],
        logo_candidates=[LogoCandidate(src="data:image/svg+xml;utf8," + "x" * 500, is_svg=True)],
        brand_name="Acme",
        url="https://acme.test",
    )


def test_call_sends_json_mode_request():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return completion({"ok": True})

    assert call_groq_llm("sys", "user", 0.0, client_for(handler)) == {"ok": True}
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["response_format"] == {"type": "json_object"}
    assert seen["body"]["messages"][0] == {"role": "system", "content": "sys"}
    assert seen["body"]["model"] == settings.GROQ_MODEL

def test_transport_errors_are_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("refused", request=request)
        return completion({"ok": 1})

    assert call_groq_llm("s", "u", client=client_for(handler)) == {"ok": 1}
    assert len(calls) == 2

def test_retries_exhausted():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(GroqLLMError):
        call_groq_llm("s", "u", client=client_for(handler))

@pytest.mark.parametrize("response", [
    httpx.Response(500, text="upstream down"),
    httpx.Response(200, json={"choices": []}),
    completion("not json"),
    completion([1, 2, 3]),
])
def test_bad_responses(response):
    with pytest.raises(GroqLLMError):
        call_groq_llm("s", "u", client=client_for(lambda request: response))

def test_missing_key(monkeypatch):
    monkeypatch.setattr(settings, "GROQ_API_KEY", None)
    with pytest.raises(ClassificationError):
        call_groq_llm("s", "u", client=client_for(lambda request: completion({})))

def test_classifier_parses_enhancement(request_):
    answer = {
        "buttonClassification": {"primaryIndex": 0, "secondaryIndex": None, "confidence": 0.8},
        "colorRoles": {"primary": "#0A66FF", "confidence": 0.6},
        "logoSelection": {"selectedIndex": 0, "confidence": 0.9},
    }
    enhancement = GroqClassifier(client_for(lambda request: completion(answer))).classify(request_)
    assert enhancement.button_classification.primary_index == 0
    assert enhancement.color_roles.primary == "#0A66FF"
    assert enhancement.logo_selection.selected_index == 0

def test_classifier_rejects_wrong_shape(request_):
    answer = {"buttonClassification": {"primaryIndex": "the blue one"}}
    classifier = GroqClassifier(client_for(lambda request: completion(answer)))
    with pytest.raises(InvalidEnhancementError):
        classifier.classify(request_)

def test_user_prompt_is_compact(request_):
    prompt = build_user_prompt(request_)
    assert "Get Started" in prompt
    assert "rgb(10, 102, 255)" not in prompt
    assert "x" * 200 not in prompt
    assert "brand_name: Acme" in prompt
