"""Domain input validation and id masking"""
from domainanalyzer.domain.validator import validate_domain, require_valid_domain
from domainanalyzer.domain.masking import (
    DomainIdMasker,
    hash_domain_id,
    fallback_mask,
    fallback_unmask,
)

__all__ = [
    'validate_domain',
    'require_valid_domain',
    'DomainIdMasker',
    'hash_domain_id',
    'fallback_mask',
    'fallback_unmask',
]
