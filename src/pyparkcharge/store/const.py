"""Column names shared by both reservation tables."""

DATE_COLUMN = "date"
FROM_TIME_COLUMN = "from_time"
TO_TIME_COLUMN = "to_time"
RENTER_EMAIL_COLUMN = "useremail_id"
PROVIDER_EMAIL_COLUMN = "provideremail_id"
FEE_COLUMN = "total_fee"

RENTER_ACCOUNT_COLUMN = "user_account_addr"
RENTER_EVM_COLUMN = "user_evm_addr"
PROVIDER_ACCOUNT_COLUMN = "provider_account_addr"
PROVIDER_EVM_COLUMN = "provider_evm_addr"

REWARD_DEFAULTS = {
    "provider_earned_rewards": "0",
    "user_earned_rewards": "0",
    "nft_id": "",
}

RESOURCE_OWNER_COLUMN = "email_id"

USER_TABLE = "user"
USER_EMAIL_COLUMN = "email_id"
USER_ACCOUNT_COLUMN = "hedera_account_id"
USER_EVM_COLUMN = "hedera_evm_addr"

DEFAULT_API_URI = "rest/v1"

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "User-Agent": "pyparkcharge",
}
