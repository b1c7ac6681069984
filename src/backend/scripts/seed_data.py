"""Seed script: inserts the job site catalogue and an admin account.

Safe to run more than once; existing rows are skipped.
Run via: CURRICULO_ADMIN_PASSWORD=... python scripts/seed_data.py
"""

import asyncio
import os
import sys

from sqlalchemy import select

from curriculopro.core.auth import create_access_token, hash_password
from curriculopro.core.database import async_session, engine
from curriculopro.models.orm import JobSite, UserProfile

ADMIN_EMAIL = os.environ.get("CURRICULO_ADMIN_EMAIL", "admin@curriculopro.com.br")


def admin_password() -> str:
    """The admin password from the environment. There is no default."""
    password = os.environ.get("CURRICULO_ADMIN_PASSWORD", "").strip()
    if not password:
        sys.exit("CURRICULO_ADMIN_PASSWORD must be set to create the admin account")
    return password


JOB_SITES = [
    {
        "name": "LinkedIn",
        "description": "Maior rede profissional do mundo, com vagas de todos os níveis",
        "base_url": "https://www.linkedin.com/jobs",
        "characteristics": {
            "foco": "networking e perfil profissional",
            "tom": "profissional e objetivo",
            "destaques": ["conquistas mensuráveis", "recomendações", "palavras-chave do cargo"],
        },
        "default_keywords": ["liderança", "resultados", "colaboração", "inovação"],
    },
    {
        "name": "Catho",
        "description": "Site de empregos brasileiro com foco em vagas CLT",
        "base_url": "https://www.catho.com.br",
        "characteristics": {
            "foco": "experiência formal e pretensão salarial",
            "tom": "formal",
            "destaques": ["histórico profissional", "formação", "certificações"],
        },
        "default_keywords": ["CLT", "experiência", "formação superior", "proatividade"],
    },
    {
        "name": "Indeed",
        "description": "Agregador de vagas com grande volume de oportunidades no Brasil",
        "base_url": "https://br.indeed.com",
        "characteristics": {
            "foco": "correspondência de palavras-chave",
            "tom": "direto",
            "destaques": ["habilidades técnicas", "cargos anteriores", "localização"],
        },
        "default_keywords": ["habilidades técnicas", "trabalho em equipe", "comunicação"],
    },
    {
        "name": "Gupy",
        "description": "Plataforma de recrutamento usada por grandes empresas brasileiras",
        "base_url": "https://portal.gupy.io",
        "characteristics": {
            "foco": "triagem automatizada por aderência à vaga",
            "tom": "objetivo",
            "destaques": ["palavras-chave da descrição", "competências comportamentais"],
        },
        "default_keywords": ["aderência", "competências", "cultura", "adaptabilidade"],
    },
    {
        "name": "InfoJobs",
        "description": "Portal de empregos com vagas em diversas áreas",
        "base_url": "https://www.infojobs.com.br",
        "characteristics": {
            "foco": "experiência e disponibilidade",
            "tom": "formal",
            "destaques": ["experiência recente", "disponibilidade", "formação"],
        },
        "default_keywords": ["experiência", "disponibilidade", "organização"],
    },
]


async def seed(password: str) -> None:
    async with async_session() as session:
        result = await session.execute(select(JobSite.name))
        existing_sites = set(result.scalars().all())
        for site in JOB_SITES:
            if site["name"] not in existing_sites:
                session.add(JobSite(**site))

        admin = (
            await session.execute(select(UserProfile).where(UserProfile.email == ADMIN_EMAIL))
        ).scalar_one_or_none()
        if admin is None:
            admin = UserProfile(
                email=ADMIN_EMAIL,
                name="Administrador",
                user_type="admin",
                email_verified=True,
                password_hash=hash_password(password),
            )
            session.add(admin)

        await session.commit()
        await session.refresh(admin)

    await engine.dispose()

    token = create_access_token(admin.id, admin.email)

    print("=" * 60)
    print("Seed data inserted successfully!")
    print("=" * 60)
    print()
    print(f"Job sites:  {', '.join(s['name'] for s in JOB_SITES)}")
    print(f"Admin:      {admin.email} ({admin.id})")
    print()
    print(f"JWT Token:  {token}")
    print()
    print("Test with:")
    print(f'  export TOKEN="{token}"')
    print()
    print("  # List job sites")
    print("  curl -s http://localhost:8000/api/analyze/job-sites | python -m json.tool")
    print()
    print("  # Dashboard stats")
    print('  curl -s -H "Authorization: Bearer $TOKEN" http://localhost:8000/api/admin/stats | python -m json.tool')


if __name__ == "__main__":
    asyncio.run(seed(admin_password()))
