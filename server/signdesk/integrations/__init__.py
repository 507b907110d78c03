"""
Integration modules for SignDesk

Contains adapters and clients for external systems:
- E-signature providers (Assinafy)
"""
