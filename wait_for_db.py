import os, time
from urllib.parse import urlparse

DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///./hotel.db"

if not DATABASE_URL.startswith(("postgres://", "postgresql")):
    # SQLite (local dev / tests): nothing to wait for
    print("[wait_for_db] Non-Postgres DATABASE_URL, not waiting.")
else:
    import psycopg2

    # SQLAlchemy URL may start with postgresql+psycopg2://
    url = DATABASE_URL.replace("postgresql+psycopg2://", "postgresql://").replace("postgres://", "postgresql://")
    p = urlparse(url)

    host = p.hostname or "db"
    port = p.port or 5432
    user = p.username or "hotel"
    password = p.password or "hotel"
    dbname = (p.path or "/hotel").lstrip("/") or "hotel"

    timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))
    start = time.time()

    print(f"[wait_for_db] Waiting for Postgres at {host}:{port} db={dbname} user={user} (timeout={timeout_s}s)")
    while True:
        try:
            conn = psycopg2.connect(host=host, port=port, user=user, password=password, dbname=dbname)
            conn.close()
            print("[wait_for_db] Postgres is ready.")
            break
        except psycopg2.OperationalError as e:
            if time.time() - start > timeout_s:
                print(f"[wait_for_db] Timed out waiting for DB. Last error: {e}")
                raise
            time.sleep(1)
