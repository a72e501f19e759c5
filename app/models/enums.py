# app/models/enums.py
import enum


class UserRole(enum.Enum):
    admin = "admin"
    normal_user = "normal_user"
    store_owner = "store_owner"


class PolicyAction(enum.Enum):
    select = "select"
    insert = "insert"
    update = "update"
    delete = "delete"
