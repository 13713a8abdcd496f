from fastapi.security import HTTPBearer

# Riders may browse without signing in, so a missing token is not an error here
bearer_account = HTTPBearer(scheme_name="Account HTTPBearer", auto_error=False)
