import os, time

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError

DATABASE_URL = os.getenv("DATABASE_URL") or os.getenv("SQLALCHEMY_DATABASE_URI")
if not DATABASE_URL:
    raise SystemExit("DATABASE_URL is not set")

# Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = "postgresql+psycopg2://" + DATABASE_URL[11:]

timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))
engine = create_engine(DATABASE_URL, pool_pre_ping=True)
start = time.time()
last_err = None

print(f"[wait_for_db] Waiting for {engine.url.render_as_string(hide_password=True)} (timeout={timeout_s}s)")
while True:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("[wait_for_db] Database is ready.")
        break
    except OperationalError as e:
        last_err = e
        if time.time() - start > timeout_s:
            print(f"[wait_for_db] Timed out waiting for DB. Last error: {last_err}")
            raise
        time.sleep(1)
engine.dispose()
