# Services package init
"""
Scholar Registry: Services Layer
=================================

Service Inventory:
    - ScholarService: record create/read/update/delete, coordinating image
      uploads and superseded-image cleanup with the blob store
    - SponsorService: read-only sponsor listing and lookup
    - parse_identifier(): path id validation shared by both

Services take the request's AsyncSession as an argument and raise
application exceptions; they know nothing about HTTP.
"""
