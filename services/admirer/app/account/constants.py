"""
Account domain — deletion constants.
"""

# Literal the client must send to delete the account
DELETE_CONFIRMATION: str = "DELETE"

# Records per committed DELETE batch
DELETE_BATCH_SIZE: int = 400
