"""create_chat_tables

Revision ID: 3c1f9e2a7b40
Revises:
Create Date: 2026-10-19 09:12:31.482105

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c1f9e2a7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Create chats table
    op.create_table('chats',
    sa.Column('id', sa.UUID(as_uuid=False), nullable=False, comment='Chat UUID'),
    sa.Column('user_id', sa.String(length=255), nullable=False, comment='Owning user ID'),
    sa.Column('title', sa.Text(), nullable=False, comment='Chat display title'),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Record creation timestamp'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_chats_user_created', 'chats', ['user_id', 'created_at'], unique=False)
    op.create_index(op.f('ix_chats_user_id'), 'chats', ['user_id'], unique=False)

    # Create messages table
    op.create_table('messages',
    sa.Column('id', sa.UUID(as_uuid=False), nullable=False, comment='Message UUID'),
    sa.Column('chat_id', sa.UUID(as_uuid=False), nullable=False, comment='Chat UUID'),
    sa.Column('role', sa.String(length=20), nullable=False, comment='Message role: system, user, assistant, or tool'),
    sa.Column('content', postgresql.JSONB(astext_type=sa.Text()), nullable=False, comment='Message content as text or list of parts'),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Record creation timestamp'),
    sa.ForeignKeyConstraint(['chat_id'], ['chats.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_messages_chat_created', 'messages', ['chat_id', 'created_at'], unique=False)
    op.create_index(op.f('ix_messages_chat_id'), 'messages', ['chat_id'], unique=False)

    # Create documents table
    op.create_table('documents',
    sa.Column('id', sa.UUID(as_uuid=False), nullable=False, comment='Document UUID'),
    sa.Column('title', sa.Text(), nullable=False, comment='Document title'),
    sa.Column('content', sa.Text(), nullable=True, comment='Markdown body'),
    sa.Column('user_id', sa.String(length=255), nullable=False, comment='Owning user ID'),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Record creation timestamp'),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='Record last update timestamp'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_documents_user_id'), 'documents', ['user_id'], unique=False)

    # Create suggestions table
    op.create_table('suggestions',
    sa.Column('id', sa.UUID(as_uuid=False), nullable=False, comment='Suggestion UUID'),
    sa.Column('document_id', sa.UUID(as_uuid=False), nullable=False, comment='Document UUID'),
    sa.Column('original_text', sa.Text(), nullable=False),
    sa.Column('suggested_text', sa.Text(), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('is_resolved', sa.Boolean(), nullable=False, comment='Whether the user accepted or dismissed the suggestion'),
    sa.Column('user_id', sa.String(length=255), nullable=False, comment='Owning user ID'),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Record creation timestamp'),
    sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_suggestions_document_id'), 'suggestions', ['document_id'], unique=False)

    # Create faqs table
    op.create_table('faqs',
    sa.Column('id', sa.UUID(as_uuid=False), server_default=sa.text('gen_random_uuid()'), nullable=False, comment='FAQ UUID'),
    sa.Column('question', sa.Text(), nullable=False),
    sa.Column('answer', sa.Text(), nullable=False),
    sa.Column('category', sa.String(length=100), nullable=True, comment='Optional grouping shown to clients'),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Record creation timestamp'),
    sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('faqs')

    op.drop_index(op.f('ix_suggestions_document_id'), table_name='suggestions')
    op.drop_table('suggestions')

    op.drop_index(op.f('ix_documents_user_id'), table_name='documents')
    op.drop_table('documents')

    op.drop_index(op.f('ix_messages_chat_id'), table_name='messages')
    op.drop_index('idx_messages_chat_created', table_name='messages')
    op.drop_table('messages')

    op.drop_index(op.f('ix_chats_user_id'), table_name='chats')
    op.drop_index('idx_chats_user_created', table_name='chats')
    op.drop_table('chats')
