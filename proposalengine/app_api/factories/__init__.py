from .build_app import build_proposal_service

__all__ = ["build_proposal_service"]
