"""
Integration test modules

Tests for the Assinafy e-signature integration:
- HTTP transport
- Processing poller
- Signer resolution
- Envelope assembly and the end-to-end creation flow
"""
