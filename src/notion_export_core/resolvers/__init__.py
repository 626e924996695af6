from .block_id import block_id_from_url, is_block_id, normalize_block_id, resolve_block_id, to_dashed_uuid

__all__ = ["block_id_from_url", "is_block_id", "normalize_block_id", "resolve_block_id", "to_dashed_uuid"]
