"""
Schema for the usuarios table
"""

CREATE_USERS_TABLE = """
    CREATE TABLE IF NOT EXISTS usuarios (
        id SERIAL PRIMARY KEY,
        nombre VARCHAR(100) NOT NULL,
        email VARCHAR(150) UNIQUE NOT NULL,
        telefono VARCHAR(20) NOT NULL,
        fecha_creacion TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        fecha_actualizacion TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

# PostgreSQL has no ON UPDATE column default, a trigger refreshes fecha_actualizacion instead
CREATE_TOUCH_FUNCTION = """
    CREATE OR REPLACE FUNCTION usuarios_touch_fecha_actualizacion()
    RETURNS TRIGGER AS $$
    BEGIN
        NEW.fecha_actualizacion = NOW();
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql
"""

DROP_TOUCH_TRIGGER = "DROP TRIGGER IF EXISTS usuarios_fecha_actualizacion ON usuarios"

CREATE_TOUCH_TRIGGER = """
    CREATE TRIGGER usuarios_fecha_actualizacion
    BEFORE UPDATE ON usuarios
    FOR EACH ROW EXECUTE FUNCTION usuarios_touch_fecha_actualizacion()
"""

SCHEMA_STATEMENTS = [
    CREATE_USERS_TABLE,
    CREATE_TOUCH_FUNCTION,
    DROP_TOUCH_TRIGGER,
    CREATE_TOUCH_TRIGGER,
]


async def ensure_schema(conn) -> None:
    """Create the usuarios table and its update trigger if they are missing"""
    async with conn.transaction():
        for statement in SCHEMA_STATEMENTS:
            await conn.execute(statement)
