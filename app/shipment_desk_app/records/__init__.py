"""Shipment records: model, persistence, and schema-validated writes."""
