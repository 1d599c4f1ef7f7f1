from __future__ import annotations

import requests

from safetynet.network import AlwaysOnline, HttpReachability, StaticReachability


def test_http_reachability_any_answer_counts_as_online(requests_mock) -> None:
    requests_mock.head("https://probe.test/generate_204", status_code=503)

    assert HttpReachability(url="https://probe.test/generate_204").is_online() is True


def test_http_reachability_connection_failure_is_offline(requests_mock) -> None:
    requests_mock.head("https://probe.test/generate_204", exc=requests.exceptions.ConnectionError)

    assert HttpReachability(url="https://probe.test/generate_204").is_online() is False


def test_static_reachability_can_be_flipped() -> None:
    reachability = StaticReachability(online=False)
    assert reachability.is_online() is False

    reachability.online = True
    assert reachability.is_online() is True
    assert AlwaysOnline().is_online() is True
