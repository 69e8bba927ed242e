"""
Accès Supabase partagé par les repositories (stock produits, profils clients, identité).
- get_supabase(): client 'anon' unique pour les lectures publiques (products).
- get_user_supabase(token): client dédié agissant au nom d'un client connecté (RLS actif).
- fetch_single_row(): lecture d'une ligne unique par id, None si absente.
"""
from typing import Any, Dict, Optional
from supabase import create_client, Client
from storefront.config import SUPABASE_URL, SUPABASE_ANON

_supabase: Optional[Client] = None

def get_supabase() -> Client:
    global _supabase
    if _supabase is None:
        _supabase = create_client(SUPABASE_URL, SUPABASE_ANON)
    return _supabase

def get_user_supabase(user_token: str) -> Client:
    """
    Client Supabase 'anon' avec auth utilisateur (RLS actif).
    Sert aux écritures sur user_profiles sans polluer l'instance globale.
    """
    if not user_token:
        raise ValueError("user_token is required")
    client = create_client(SUPABASE_URL, SUPABASE_ANON)
    client.postgrest.auth(user_token)
    return client

def fetch_single_row(client: Client, table: str, columns: str, row_id: str) -> Optional[Dict[str, Any]]:
    """
    Retourne la ligne `row_id` de `table` (colonnes `columns`) ou None si aucune ligne.
    Les erreurs réseau/PostgREST sont propagées: c'est l'appelant qui décide de la politique.
    """
    res = (
        client
        .table(table)
        .select(columns)
        .eq("id", row_id)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None
