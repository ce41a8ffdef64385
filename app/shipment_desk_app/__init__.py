"""Dynamic field schema engine and shipment import service."""
