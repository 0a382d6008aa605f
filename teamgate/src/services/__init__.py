"""
Service layer for business logic.

Services are imported from their modules directly
(e.g. ``from teamgate.src.services.team_service import TeamService``);
utils.domains depends on services.exceptions, so this package stays empty.
"""
