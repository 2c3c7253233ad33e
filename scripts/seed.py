from app.core.config import session_token_settings
from app.db.session import engine, Session, init_db
from app.db.seed import seed_all
from app.security.tokens import create_session_token
from datetime import timedelta

SEED_PATH = "app/db/seed_data.yaml"
DEV_SHOP = "demo.myshopify.com"

def run_seed():
    init_db()
    with Session(engine) as session:
        seed_all(session, SEED_PATH)

    # token de dev pour appeler l'API admin en local (Swagger → Authorize)
    token = create_session_token(shop=DEV_SHOP, settings=session_token_settings, ttl=timedelta(hours=8))
    print(f"🔑 Session token ({DEV_SHOP}, 8h):\n{token}")

if __name__ == "__main__":
    run_seed()
