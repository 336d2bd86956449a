"""create generations and images tables

Revision ID: 3f9c2d7e1a40
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f9c2d7e1a40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'generations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('negative_prompt', sa.Text(), nullable=True),
        sa.Column('context', sa.Text(), nullable=True),
        sa.Column('model', sa.String(length=255), nullable=False),
        sa.Column('provider', sa.String(length=50), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False),
        sa.Column('aspect_ratio', sa.String(length=20), nullable=False),
        sa.Column('cost', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('selected_index', sa.Integer(), nullable=True),
        sa.Column('selected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('storage_key', sa.String(length=1024), nullable=True),
        sa.Column('public_url', sa.String(length=2048), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_generations_created_at', 'generations', ['created_at'])
    op.create_index('ix_generations_selected_index', 'generations', ['selected_index'])

    op.create_table(
        'images',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('generation_id', sa.String(length=36), nullable=False),
        sa.Column('index_num', sa.Integer(), nullable=False),
        sa.Column('preview_url', sa.Text(), nullable=False),
        sa.Column('width', sa.Integer(), nullable=True),
        sa.Column('height', sa.Integer(), nullable=True),
        sa.Column('seed', sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(['generation_id'], ['generations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('generation_id', 'index_num', name='uq_image_index'),
    )
    op.create_index('ix_images_generation_id', 'images', ['generation_id'])


def downgrade():
    op.drop_index('ix_images_generation_id', table_name='images')
    op.drop_table('images')
    op.drop_index('ix_generations_selected_index', table_name='generations')
    op.drop_index('ix_generations_created_at', table_name='generations')
    op.drop_table('generations')
