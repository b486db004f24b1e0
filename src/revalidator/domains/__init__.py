from revalidator.domains.domain_repo import DomainRegistry, DomainRepository

__all__ = ["DomainRegistry", "DomainRepository"]
