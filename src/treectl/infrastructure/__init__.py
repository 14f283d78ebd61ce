"""Infrastructure layer — predicate evaluation, notifiers, sinks, and tree documents.

Reference collaborator implementations live here; the service layer only
depends on the protocols in :mod:`treectl.domain.collaborators`.
"""
