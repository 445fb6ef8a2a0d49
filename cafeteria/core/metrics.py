"""
Cafeteria — Business metrics

Registered on the default prometheus_client registry, which is the one the
instrumentator exposes on /metrics.
"""
from prometheus_client import Counter

orders_placed_total = Counter(
    name="cafeteria_orders_placed_total",
    documentation="Orders committed by the placement engine",
)

orders_rejected_total = Counter(
    name="cafeteria_orders_rejected_total",
    documentation="Checkouts that were rolled back",
    labelnames=["reason"],  # insufficient_stock, product_not_found, validation_failed, storage_failure
)

order_status_changes_total = Counter(
    name="cafeteria_order_status_changes_total",
    documentation="Order status updates applied",
    labelnames=["status"],
)

broadcast_failures_total = Counter(
    name="cafeteria_broadcast_failures_total",
    documentation="Events that could not be published after commit",
    labelnames=["event"],
)
