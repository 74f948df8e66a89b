from explorer.core.services.domain_cache import Domain, DomainCacheOrchestrator, build_orchestrators
from explorer.core.services.location_service import LocationResolver

__all__ = ["Domain", "DomainCacheOrchestrator", "LocationResolver", "build_orchestrators"]
