"""
Mint Action API - action protocol endpoints for an open-edition NFT drop.

Provides REST endpoints for:
- Describing the mint action (GET /api/mint)
- Building unsigned claim transactions (POST /api/mint/{amount})
- Health checks
"""

__version__ = "0.1.0"
