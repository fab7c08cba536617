"""
initial schema: users, profiles, mentors, bookings

Row security is enabled on the three domain tables with policies for the
``authenticated`` role (created when missing), keyed on the
``app.current_user_id`` setting; the API enforces the same policies in
app.core.policies for connections that own the tables.

Revision ID: 20250605_initial_schema
Revises:
Create Date: 2025-06-05
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '20250605_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

_IDENTITY = "current_setting('app.current_user_id', true)"
# Policies bind to this role only; other non-owner roles see no rows
POLICY_ROLE = "authenticated"

POLICIES = [
    ("profiles", "Users can view all profiles", "SELECT", "true", None),
    ("profiles", "Users can update own profile", "UPDATE", f"{_IDENTITY} = id", f"{_IDENTITY} = id"),
    ("mentors", "Anyone can view available mentors", "SELECT", "available = true", None),
    ("mentors", "Mentors can update own profile", "UPDATE", f"{_IDENTITY} = id", f"{_IDENTITY} = id"),
    ("bookings", "Users can view own bookings", "SELECT",
     f"{_IDENTITY} = user_id OR {_IDENTITY} = mentor_id", None),
    ("bookings", "Users can create bookings", "INSERT", None, f"{_IDENTITY} = user_id"),
    ("bookings", "Users can update own bookings", "UPDATE",
     f"{_IDENTITY} = user_id OR {_IDENTITY} = mentor_id",
     f"{_IDENTITY} = user_id OR {_IDENTITY} = mentor_id"),
]

TIMESTAMPED_TABLES = ("profiles", "mentors", "bookings")


def policy_sql(table, name, command, using, check):
    sql = f'CREATE POLICY "{name}" ON {table} FOR {command} TO {POLICY_ROLE}'
    if using:
        sql += f" USING ({using})"
    if check:
        sql += f" WITH CHECK ({check})"
    return sql


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'mentors',
        sa.Column('id', sa.String(), sa.ForeignKey('profiles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('company', sa.Text(), nullable=False),
        sa.Column('position', sa.Text(), nullable=False),
        sa.Column('experience_years', sa.Integer(), nullable=False),
        sa.Column('hourly_rate', sa.Integer(), nullable=False),
        sa.Column('bio', sa.Text(), nullable=False),
        sa.Column('expertise', postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column('available', sa.Boolean(), server_default=sa.text('true'), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'bookings',
        sa.Column('id', sa.String(), primary_key=True, server_default=sa.text('gen_random_uuid()::text')),
        sa.Column('mentor_id', sa.String(), sa.ForeignKey('mentors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(), server_default='pending', nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name='valid_status',
        ),
    )
    op.create_index('ix_bookings_mentor_id', 'bookings', ['mentor_id'])
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])

    op.execute(
        f"""
        DO $$
        BEGIN
          IF NOT EXISTS (SELECT 1 FROM pg_roles WHERE rolname = '{POLICY_ROLE}') THEN
            CREATE ROLE {POLICY_ROLE} NOLOGIN;
          END IF;
        END
        $$;
        """
    )
    for table in TIMESTAMPED_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(f"GRANT SELECT, INSERT, UPDATE ON {table} TO {POLICY_ROLE}")

    for policy in POLICIES:
        op.execute(policy_sql(*policy))

    op.execute(
        """
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
          NEW.updated_at = now();
          RETURN NEW;
        END;
        $$ language 'plpgsql';
        """
    )
    for table in TIMESTAMPED_TABLES:
        op.execute(
            f"CREATE TRIGGER update_{table}_updated_at BEFORE UPDATE ON {table} "
            f"FOR EACH ROW EXECUTE FUNCTION update_updated_at_column()"
        )


def downgrade() -> None:
    for table in TIMESTAMPED_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    for table, name, _command, _using, _check in POLICIES:
        op.execute(f'DROP POLICY IF EXISTS "{name}" ON {table}')

    op.drop_index('ix_bookings_user_id', table_name='bookings')
    op.drop_index('ix_bookings_mentor_id', table_name='bookings')
    op.drop_table('bookings')
    op.drop_table('mentors')
    op.drop_table('profiles')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
