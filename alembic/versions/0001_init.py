from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('competitions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('external_id', sa.String(128), nullable=False, unique=True),
        sa.Column('name', sa.String(200), nullable=False, server_default=''),
        sa.Column('activity_type', sa.String(32), nullable=False),
        sa.Column('scoring_method', sa.String(32), nullable=False, server_default='total_distance'),
        sa.Column('start_at', sa.BigInteger, nullable=False),
        sa.Column('end_at', sa.BigInteger, nullable=False),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table('competition_participants',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('competition_id', sa.Integer, sa.ForeignKey('competitions.id'), nullable=False),
        sa.Column('author', sa.String(128), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('competition_id', 'author', name='uq_competition_author')
    )
    op.create_index('ix_competition_participants_competition_id', 'competition_participants', ['competition_id'])

    op.create_table('workout_submissions',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('event_id', sa.String(128), nullable=False, unique=True),
        sa.Column('author', sa.String(128), nullable=False),
        sa.Column('activity_type', sa.String(32), nullable=False),
        sa.Column('distance_meters', sa.Float),
        sa.Column('duration_seconds', sa.Integer),
        sa.Column('calories', sa.Integer),
        sa.Column('created_at', sa.BigInteger, nullable=False),
        sa.Column('source', sa.String(32), nullable=False, server_default='app'),
        sa.Column('flagged', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('flag_reason', sa.String(64)),
        sa.Column('raw_event', sa.JSON),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_submissions_author_created', 'workout_submissions', ['author', 'created_at'])
    op.create_index('idx_submissions_activity_created', 'workout_submissions', ['activity_type', 'created_at'])

    op.create_table('flagged_workouts',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('event_id', sa.String(128), nullable=False, unique=True),
        sa.Column('author', sa.String(128), nullable=False),
        sa.Column('activity_type', sa.String(32), nullable=False),
        sa.Column('distance_meters', sa.Float),
        sa.Column('duration_seconds', sa.Integer),
        sa.Column('created_at', sa.BigInteger, nullable=False),
        sa.Column('reason', sa.String(64), nullable=False),
        sa.Column('detail', sa.String(300)),
        sa.Column('raw_event', sa.JSON),
        sa.Column('flagged_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('review_status', sa.String(16), nullable=False, server_default='pending'),
    )
    op.create_index('ix_flagged_workouts_author', 'flagged_workouts', ['author'])

def downgrade():
    op.drop_index('ix_flagged_workouts_author', table_name='flagged_workouts')
    op.drop_table('flagged_workouts')
    op.drop_index('idx_submissions_activity_created', table_name='workout_submissions')
    op.drop_index('idx_submissions_author_created', table_name='workout_submissions')
    op.drop_table('workout_submissions')
    op.drop_index('ix_competition_participants_competition_id', table_name='competition_participants')
    op.drop_table('competition_participants')
    op.drop_table('competitions')
