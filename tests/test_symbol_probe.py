import asyncio

import httpx

from deltalocate.symbol_probe import http_client, is_transient, probe_symbol_url

URL = "https://msdl.microsoft.com/download/symbols/a.dll/5f5e10006000/a.dll"


def _probe(handler, url=URL, limiter=None):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await probe_symbol_url(client, url, limiter=limiter, retry_delay=0)

    return asyncio.run(go())


def test_found_is_a_302_and_redirect_is_not_followed():
    seen = []

    def handler(request):
        seen.append((request.method, str(request.url)))
        return httpx.Response(302, headers={"Location": "https://example.com/blob/a.dll"})

    assert _probe(handler) is True
    assert seen == [("HEAD", URL)]


def test_404_and_other_statuses_are_invalid():
    assert _probe(lambda request: httpx.Response(404)) is False
    assert _probe(lambda request: httpx.Response(200)) is False
    assert _probe(lambda request: httpx.Response(301, headers={"Location": "https://example.com/"})) is False


def test_retries_5xx_until_a_final_answer():
    statuses = [503, 503, 503, 302]
    answered = []

    def handler(request):
        status = statuses[len(answered)]
        answered.append(status)
        return httpx.Response(status)

    assert _probe(handler) is True
    # the 302 is the only answer that could have produced the result
    assert answered == [503, 503, 503, 302]


def test_retry_then_missing_is_invalid():
    answered = []

    def handler(request):
        answered.append(request.method)
        return httpx.Response(500 if len(answered) == 1 else 404)

    assert _probe(handler) is False
    assert len(answered) == 2


def test_limiter_caps_requests_in_flight():
    in_flight = 0
    peak = 0

    async def handler(request):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return httpx.Response(404)

    async def go():
        limiter = asyncio.Semaphore(2)
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await asyncio.gather(
                *(probe_symbol_url(client, f"{URL}?{i}", limiter=limiter, retry_delay=0) for i in range(6))
            )

    results = asyncio.run(go())
    assert results == [False] * 6
    assert peak <= 2


def test_is_transient():
    assert is_transient(500)
    assert is_transient(503)
    assert is_transient(599)
    assert not is_transient(404)
    assert not is_transient(302)


def test_http_client_does_not_follow_redirects():
    client = http_client(4)
    try:
        assert client.follow_redirects is False
    finally:
        asyncio.run(client.aclose())
