from app.chains.registry import EXPLORERS, SUPPORTED_TOKENS, TOKENS, is_valid_address

__all__ = ["EXPLORERS", "SUPPORTED_TOKENS", "TOKENS", "is_valid_address"]
