class FarmError(Exception):
    """
    Base error for every rejected transaction.

    The whole call is rejected: no state change survives a FarmError.
    """

    code = "farm_error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class InvalidAmount(FarmError):
    code = "invalid_amount"
    status_code = 400


class Unauthorized(FarmError):
    code = "unauthorized"
    status_code = 403


class TransferFailed(FarmError):
    code = "transfer_failed"
    status_code = 400


class NothingToClaim(FarmError):
    code = "nothing_to_claim"
    status_code = 409


class NothingStaked(FarmError):
    code = "nothing_staked"
    status_code = 409


class InvalidAddress(FarmError):
    code = "invalid_address"
    status_code = 400


class UnknownToken(FarmError):
    code = "unknown_token"
    status_code = 404
