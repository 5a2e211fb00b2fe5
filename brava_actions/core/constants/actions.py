from enum import IntEnum


class ActionType(IntEnum):
    DEPOSIT = 0
    WITHDRAW = 1
    SWAP = 2
    COVER = 3
    FEE = 4
    TRANSFER = 5
    CUSTOM = 6


class LogId(IntEnum):
    BALANCE_UPDATE = 1
    WITHDRAWAL_REQUEST = 2
    SWAP = 3
    SEND_TOKEN = 4
    PULL_TOKEN = 5
