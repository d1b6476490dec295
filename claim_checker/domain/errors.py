"""Domain exceptions raised across the claim verification pipeline."""


class AssessmentUnavailable(Exception):
    """The AI assessment capability could not produce a verdict.

    Raised for a missing credential, a timeout, a transport error, a
    non-success status or a response body that is not a JSON object.
    The verification pipeline treats this as "no AI input".
    """


class ItemNotFoundError(Exception):
    """The item referenced by a claim does not exist."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item '{item_id}' not found")


class StoreUnavailableError(Exception):
    """The document store could not serve a mandatory read."""


class ClaimNotFoundError(Exception):
    """The claim referenced by an admin action does not exist."""

    def __init__(self, claim_id: str):
        self.claim_id = claim_id
        super().__init__(f"Claim '{claim_id}' not found")


class InvalidTransitionError(Exception):
    """A claim or item status change is not allowed from its current state."""
