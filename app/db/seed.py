from pathlib import Path
from typing import Any, Dict, List

import yaml
from sqlmodel import Session

from app.db.repositories.videos import VideoRepository
from app.features.videos.services import VideoService


# -----------------------------
# YAML loader
# -----------------------------
def load_seed_yaml(seed_path: str | Path) -> Dict[str, Any]:
    path = Path(seed_path)
    if not path.exists():
        raise FileNotFoundError(f"Seed YAML introuvable: {path}")

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Le YAML de seed doit contenir un objet racine (mapping).")
    return data


# -----------------------------
# Seeds
# -----------------------------
def seed_videos(session: Session, data: Dict[str, Any]) -> int:
    """
    Insère les vidéos de démo, boutique par boutique, si la boutique n'en a pas encore.
    Format attendu :
        shops:
          demo.myshopify.com:
            - {title: ..., video_url: ..., source_type: TikTok}
    """
    svc = VideoService(VideoRepository(session))
    shops: Dict[str, List[Dict[str, Any]]] = data.get("shops") or {}
    created = 0
    for shop, videos in shops.items():
        if svc.stats(shop).total > 0:
            print(f"ℹ️ {shop} a déjà des vidéos, aucune insertion effectuée.")
            continue
        for video in videos or []:
            svc.create(shop, video)
            created += 1
        print(f"✅ {len(videos or [])} vidéos insérées pour {shop}.")
    return created


def seed_all(session: Session, seed_path: str | Path) -> int:
    data = load_seed_yaml(seed_path)
    return seed_videos(session, data)
