"""Clearance domain: model, matching, negotiation and ports."""
