"""
Helpers shared by the Kie adapters.

Kie wraps every response as {code, msg, data}. A `code` other than 200 is
an error even when the HTTP status is 200. Finished Market jobs carry their
outputs in `data.resultJson`, a JSON document encoded as a string.
"""

from typing import Any, TypeVar, Union

from ..errors import ProviderError
from ..extraction import FieldChain, parse_json_field
from ..payloads import KieEnvelope, KieGpt4oEnvelope, parse_payload
from .base import string_urls

RESULT_URLS = FieldChain("result urls", ["resultUrls", "resultUrl"])

E = TypeVar("E", bound=Union[KieEnvelope, KieGpt4oEnvelope])


def parse_envelope(data: Any, provider: str, model: type[E] = KieEnvelope) -> E:
    """
    Parse a Kie response and reject embedded error codes.

    Raises:
        ProviderError: When `code` is not 200
    """
    envelope = parse_payload(model, data, provider)
    if not envelope.ok:
        code = int(envelope.code) if str(envelope.code).isdigit() else 500
        raise ProviderError(provider, code, f"Kie API returned an error: {envelope.msg}", raw=data)
    return envelope


def result_urls(result_json: Any) -> list[str]:
    """Output URLs from a recordInfo `resultJson` value."""
    decoded = parse_json_field(result_json)
    urls = decoded.get("resultUrls")
    if isinstance(urls, list):
        return string_urls(urls)
    single = RESULT_URLS.first_str(decoded)
    return [single] if single else []
