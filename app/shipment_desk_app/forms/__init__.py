"""Render-plan assembly for dynamic shipment forms."""
