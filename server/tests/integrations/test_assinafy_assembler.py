"""
Envelope assembly tests: tolerant field lookup and artifact URL handling.
"""

import pytest

from signdesk.integrations.esignature.assembler import (
    build_download_urls,
    extract_id,
    extract_signing_url,
    parse_document,
    to_envelope,
    to_envelope_status,
    with_access_token,
)
from signdesk.integrations.esignature.base import ArtifactKind, ResolvedSigner, SignerRole

TOKEN = "test_api_key"


@pytest.fixture
def document_payload():
    return {
        "data": {
            "id": "doc1",
            "name": "contract.pdf",
            "status": "pending_signature",
            "signing_url": "https://app.assinafy.test/sign/doc1",
            "assignment": {
                "id": "assignment1",
                "summary": {
                    "signers": [
                        {"id": "s1", "full_name": "Acme Ltda", "email": "legal@acme.com", "completed": True,
                         "completed_at": "2026-10-01T12:00:00Z"},
                        {"id": "s2", "full_name": "Maria Souza", "email": "maria@creator.io"},
                    ]
                },
            },
            "artifacts": {
                "original": "https://files.assinafy.test/doc1/original.pdf",
                "certificated": "https://files.assinafy.test/doc1/certificated.pdf",
                "certificate-page": "https://files.assinafy.test/doc1/page.pdf",
            },
        }
    }


class TestFieldExtraction:

    def test_extract_id_prefers_nested_data(self):
        assert extract_id({"data": {"id": "nested"}, "id": "top"}) == "nested"
        assert extract_id({"id": "top"}) == "top"
        assert extract_id({"data": {}}) is None
        assert extract_id("not a mapping") is None

    @pytest.mark.parametrize(
        "payload, expected",
        [
            ({"signing_url": "a", "shared_signing_url": "b"}, "a"),
            ({"shared_signing_url": "b", "sign_url": "c"}, "b"),
            ({"signing_url": "", "sign_url": "c", "signature_url": "d"}, "c"),
            ({"signing_url": None, "signature_url": "d"}, "d"),
            ({}, None),
        ],
    )
    def test_signing_url_priority(self, payload, expected):
        assert extract_signing_url(payload) == expected


class TestAccessToken:

    def test_appends_token(self):
        assert with_access_token("https://f.test/a.pdf", TOKEN) == f"https://f.test/a.pdf?access-token={TOKEN}"

    def test_uses_ampersand_when_query_exists(self):
        assert with_access_token("https://f.test/a.pdf?v=2", TOKEN) == f"https://f.test/a.pdf?v=2&access-token={TOKEN}"

    def test_applied_exactly_once(self):
        once = with_access_token("https://f.test/a.pdf", TOKEN)
        assert with_access_token(once, TOKEN) == once
        assert once.count("access-token=") == 1


class TestParseDocument:

    def test_parses_wrapped_document(self, document_payload):
        handle = parse_document(document_payload)

        assert handle.provider_document_id == "doc1"
        assert handle.status == "pending_signature"
        assert handle.signing_url == "https://app.assinafy.test/sign/doc1"
        assert set(handle.artifacts) == {ArtifactKind.ORIGINAL, ArtifactKind.CERTIFICATED}
        assert [signer.id for signer in handle.signers] == ["s1", "s2"]
        assert handle.signers[0].completed is True
        assert handle.signers[1].completed is False

    def test_parses_unwrapped_document_without_assignment(self):
        handle = parse_document({"id": "doc2", "status": "uploaded"})

        assert handle.provider_document_id == "doc2"
        assert handle.signers == []
        assert handle.artifacts == {}

    def test_falls_back_to_requested_id(self):
        assert parse_document({"status": "ready"}, fallback_id="doc3").provider_document_id == "doc3"


class TestDownloadUrls:

    def test_only_present_artifacts_are_returned(self, document_payload):
        urls = build_download_urls(parse_document(document_payload), TOKEN)

        assert urls == {
            "original": f"https://files.assinafy.test/doc1/original.pdf?access-token={TOKEN}",
            "certificated": f"https://files.assinafy.test/doc1/certificated.pdf?access-token={TOKEN}",
        }
        assert "bundle" not in urls

    def test_no_artifacts_yields_empty_mapping(self):
        assert build_download_urls(parse_document({"id": "doc1", "status": "ready"}), TOKEN) == {}


class TestEnvelopeStatus:

    def test_maps_signers_and_signed_document(self, document_payload):
        status = to_envelope_status(parse_document(document_payload), TOKEN)

        assert status.id == "doc1"
        assert status.signing_url == "https://app.assinafy.test/sign/doc1"
        assert status.signed_document_url == f"https://files.assinafy.test/doc1/certificated.pdf?access-token={TOKEN}"
        assert status.signers[0].signed is True
        assert status.signers[0].signed_at == "2026-10-01T12:00:00Z"
        assert status.signers[1].signed is False
        assert status.signers[1].signed_at is None
        assert status.all_signed is False

    def test_bundle_is_used_when_not_certificated(self):
        handle = parse_document({"id": "doc1", "status": "closed", "is_closed": True,
                                 "artifacts": {"bundle": "https://files.test/bundle.zip"}})

        status = to_envelope_status(handle, TOKEN)

        assert status.signed_document_url == f"https://files.test/bundle.zip?access-token={TOKEN}"
        assert status.is_closed is True

    def test_signing_url_from_secondary_fields(self):
        second = to_envelope_status(parse_document({"id": "d", "status": "s", "shared_signing_url": "https://x/2"}), TOKEN)
        third = to_envelope_status(parse_document({"id": "d", "status": "s", "sign_url": "https://x/3"}), TOKEN)

        assert second.signing_url == "https://x/2"
        assert third.signing_url == "https://x/3"

    def test_declined_document(self):
        handle = parse_document({"id": "doc1", "status": "declined", "decline_reason": "Wrong amount",
                                 "declined_by": "maria@creator.io"})

        status = to_envelope_status(handle, TOKEN)

        assert status.decline_reason == "Wrong amount"
        assert status.declined_by == "maria@creator.io"
        assert status.signed_document_url is None

    def test_all_signed(self):
        handle = parse_document({"id": "doc1", "status": "closed", "assignment": {"summary": {"signers": [
            {"id": "s1", "full_name": "A", "email": "a@x.com", "completed": True},
        ]}}})

        assert to_envelope_status(handle, TOKEN).all_signed is True


class TestEnvelope:

    def test_every_signer_gets_the_signing_url(self):
        handle = parse_document({"id": "doc1", "status": "ready", "signing_url": "https://x/sign"})
        resolved = [
            ResolvedSigner("s1", "Acme", "legal@acme.com", SignerRole.COMPANY),
            ResolvedSigner("s2", "Maria", "maria@creator.io", SignerRole.CREATOR),
        ]

        envelope = to_envelope("doc1", handle, resolved)

        assert envelope.id == "doc1"
        assert envelope.status == "ready"
        assert envelope.signing_url == "https://x/sign"
        assert [(s.id, s.sign_url) for s in envelope.signers] == [("s1", "https://x/sign"), ("s2", "https://x/sign")]
