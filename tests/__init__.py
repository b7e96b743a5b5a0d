import os
import tempfile

# Settings are cached on first use, so test defaults must be in place before
# any marketplace module is imported.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="marketplace-uploads-"))
