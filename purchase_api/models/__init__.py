"""Central model registry: import all models so Alembic autodiscover works."""

from purchase_api.database import Base  # noqa: F401

from purchase_api.models.purchase_request import PurchaseRequest, RequestStatus  # noqa: F401
