from .login_form import LoginFormController, LoginOutcome, hash_password, validate_login_form

__all__ = ["LoginFormController", "LoginOutcome", "hash_password", "validate_login_form"]
