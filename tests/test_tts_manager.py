import json

import httpx
import pytest

from utility.AsyncExternalLLM import AsyncExternalLLM
from utility.errors import MissingInputError, TransportError, UpstreamError
from utility.tts_manager import TTS_VOICES, TTSManager

FAKE_MP3 = b"ID3\x03\x00\x00\x00" + b"\xff\xfb" * 64


class Recorder:
    def __init__(self, handler):
        self.handler = handler
        self.bodies = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(json.loads(request.content))
        return self.handler(request)


def make_manager(handler) -> tuple[TTSManager, Recorder]:
    recorder = Recorder(handler)
    llm = AsyncExternalLLM(api_key="sk-test-key-1234567890", base_url="https://llm.test/v1",
                           transport=httpx.MockTransport(recorder))
    return TTSManager(llm=llm, model="tts-1"), recorder


def audio_ok(request):
    return httpx.Response(200, content=FAKE_MP3, headers={"Content-Type": "audio/mpeg"})


@pytest.mark.asyncio
async def test_empty_text_is_missing_input_without_network():
    manager, recorder = make_manager(audio_ok)

    with pytest.raises(MissingInputError):
        await manager.synthesize("", "es")

    assert recorder.bodies == []


@pytest.mark.asyncio
async def test_spanish_accents_are_stripped():
    manager, recorder = make_manager(audio_ok)

    audio = await manager.synthesize("café", "es")

    assert audio == FAKE_MP3
    assert recorder.bodies == [{"model": "tts-1", "input": "cafe", "voice": "echo"}]


@pytest.mark.asyncio
async def test_other_languages_keep_accents():
    manager, recorder = make_manager(audio_ok)

    await manager.synthesize("café crème", "fr")

    assert recorder.bodies[0]["input"] == "café crème"
    assert recorder.bodies[0]["voice"] == "shimmer"


@pytest.mark.asyncio
async def test_unknown_language_falls_back_to_default_voice():
    manager, recorder = make_manager(audio_ok)

    await manager.synthesize("Hello", "xx")

    assert recorder.bodies[0]["voice"] == TTS_VOICES["default"]


@pytest.mark.asyncio
async def test_upstream_error_carries_provider_message():
    manager, _ = make_manager(
        lambda request: httpx.Response(400, json={"error": {"message": "Invalid voice"}})
    )

    with pytest.raises(UpstreamError) as exc_info:
        await manager.synthesize("Hello", "en")

    assert exc_info.value.message == "Invalid voice"
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_network_failure_is_transport_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    manager, _ = make_manager(handler)

    with pytest.raises(TransportError):
        await manager.synthesize("Hello", "en")


@pytest.mark.asyncio
async def test_same_input_twice_gives_two_payloads():
    manager, recorder = make_manager(audio_ok)

    first = await manager.synthesize("Hola, ¿qué tal?", "es")
    second = await manager.synthesize("Hola, ¿qué tal?", "es")

    assert first and second
    assert len(recorder.bodies) == 2
    assert recorder.bodies[0] == recorder.bodies[1]


def test_preprocess_text():
    assert TTSManager.preprocess_text("Hi.How are you?Fine", "en") == "Hi.How are you?Fine"
    assert TTSManager.preprocess_text("  niño  ", "es") == "  nino  "
    assert TTSManager.preprocess_text("Ñandú", "es") == "Nandu"
    assert TTSManager.preprocess_text("日本語です。", "ja") == "日本語です。"


@pytest.mark.asyncio
async def test_non_spanish_text_is_sent_unmodified():
    manager, recorder = make_manager(audio_ok)

    await manager.synthesize("Pi is 3.14, see example.com ", "en")

    assert recorder.bodies[0]["input"] == "Pi is 3.14, see example.com "


def test_voice_registry_is_read_only():
    with pytest.raises(TypeError):
        TTS_VOICES["en"] = "nova"


def test_registry_requires_default():
    with pytest.raises(ValueError):
        TTSManager(voices={"en": "alloy"})
