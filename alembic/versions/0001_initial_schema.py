"""initial OSZap schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'usuarios',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('telefone', sa.String(), nullable=False, unique=True),
        sa.Column('nome', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'conversas_whatsapp',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('usuario_id', sa.Integer(),
                  sa.ForeignKey('usuarios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('chat_id', sa.String(), nullable=False),
        sa.Column('remote_jid', sa.String(), nullable=True),
        sa.Column('ultima_mensagem_em', sa.DateTime(), nullable=True),
        sa.Column('total_mensagens', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('usuario_id', 'chat_id'),
    )

    op.create_table(
        'mensagens_whatsapp',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('conversa_id', sa.Integer(),
                  sa.ForeignKey('conversas_whatsapp.id', ondelete='CASCADE'), nullable=False),
        sa.Column('message_id', sa.String(), nullable=True),
        sa.Column('tipo_mensagem', sa.String(), nullable=False, server_default='text'),
        sa.Column('conteudo_texto', sa.Text(), nullable=True),
        sa.Column('from_me', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('metadados', sa.JSON(), nullable=True),
        sa.Column('criado_em', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'ordens_servico',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('numero_os', sa.String(), nullable=False, unique=True),
        sa.Column('usuario_id', sa.Integer(),
                  sa.ForeignKey('usuarios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('cliente_nome', sa.String(), nullable=False),
        sa.Column('cliente_telefone', sa.String(), nullable=True),
        sa.Column('cliente_email', sa.String(), nullable=True),
        sa.Column('cliente_endereco', sa.String(), nullable=True),
        sa.Column('titulo', sa.String(), nullable=False),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('categoria', sa.String(), nullable=False, server_default='outro'),
        sa.Column('prioridade', sa.String(), nullable=False, server_default='normal'),
        sa.Column('status', sa.String(), nullable=False, server_default='aberta'),
        sa.Column('valor_estimado', sa.Numeric(12, 2), nullable=True),
        sa.Column('valor_final', sa.Numeric(12, 2), nullable=True),
        sa.Column('valor_pecas', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('data_abertura', sa.DateTime(), nullable=True),
        sa.Column('data_previsao', sa.DateTime(), nullable=True),
        sa.Column('data_conclusao', sa.DateTime(), nullable=True),
        sa.Column('tecnico_responsavel', sa.String(), nullable=True),
        sa.Column('observacoes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'pecas_os',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('ordem_servico_id', sa.Integer(),
                  sa.ForeignKey('ordens_servico.id', ondelete='CASCADE'), nullable=False),
        sa.Column('descricao', sa.String(), nullable=False),
        sa.Column('codigo', sa.String(), nullable=True),
        sa.Column('quantidade', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('valor_unitario', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'historico_os',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('ordem_servico_id', sa.Integer(),
                  sa.ForeignKey('ordens_servico.id', ondelete='CASCADE'), nullable=False),
        sa.Column('usuario_id', sa.Integer(), sa.ForeignKey('usuarios.id'), nullable=True),
        sa.Column('tipo_evento', sa.String(), nullable=False),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('dados_anteriores', sa.JSON(), nullable=True),
        sa.Column('dados_novos', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'contatos',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('usuario_id', sa.Integer(),
                  sa.ForeignKey('usuarios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('nome', sa.String(), nullable=False),
        sa.Column('telefone', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('observacoes', sa.Text(), nullable=True),
        sa.Column('favorito', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('usuario_id', 'telefone'),
    )

    op.create_table(
        'notificacoes_agendadas',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('usuario_id', sa.Integer(),
                  sa.ForeignKey('usuarios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('ordem_servico_id', sa.Integer(),
                  sa.ForeignKey('ordens_servico.id', ondelete='SET NULL'), nullable=True),
        sa.Column('tipo', sa.String(), nullable=False, server_default='custom'),
        sa.Column('destinatario_telefone', sa.String(), nullable=False),
        sa.Column('destinatario_nome', sa.String(), nullable=True),
        sa.Column('titulo', sa.String(), nullable=False),
        sa.Column('mensagem', sa.Text(), nullable=False),
        sa.Column('enviar_pdf', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('anexo_url', sa.String(), nullable=True),
        sa.Column('data_agendada', sa.DateTime(), nullable=False),
        sa.Column('enviar_em', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pendente'),
        sa.Column('enviada_em', sa.DateTime(), nullable=True),
        sa.Column('erro_mensagem', sa.Text(), nullable=True),
        sa.Column('tentativas', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('recorrente', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('intervalo_dias', sa.Integer(), nullable=True),
        sa.Column('proxima_execucao', sa.DateTime(), nullable=True),
        sa.Column('metadados', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notificacoes_agendadas_enviar_em', 'notificacoes_agendadas', ['enviar_em'])
    op.create_index('ix_notificacoes_agendadas_status', 'notificacoes_agendadas', ['status'])

    op.create_table(
        'triggers_automaticos',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('usuario_id', sa.Integer(),
                  sa.ForeignKey('usuarios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tipo_evento', sa.String(), nullable=False),
        sa.Column('condicoes', sa.JSON(), nullable=True),
        sa.Column('tipo_acao', sa.String(), nullable=False),
        sa.Column('parametros_acao', sa.JSON(), nullable=True),
        sa.Column('ativo', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('execucoes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('ultima_execucao', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'leads',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('telefone', sa.String(), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('origem', sa.String(), nullable=False, server_default='landing_page'),
        sa.Column('status', sa.String(), nullable=False, server_default='novo'),
        sa.Column('convertido_em_usuario', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('primeira_mensagem_enviada', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('data_primeira_mensagem', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'orders_service',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('client_name', sa.String(), nullable=False),
        sa.Column('client_phone', sa.String(), nullable=True),
        sa.Column('services', sa.JSON(), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(), nullable=False, server_default='pendente'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('pdf_path', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_orders_service_created_at', 'orders_service', ['created_at'])


def downgrade():
    op.drop_index('ix_orders_service_created_at', table_name='orders_service')
    op.drop_table('orders_service')
    op.drop_table('leads')
    op.drop_table('triggers_automaticos')
    op.drop_index('ix_notificacoes_agendadas_status', table_name='notificacoes_agendadas')
    op.drop_index('ix_notificacoes_agendadas_enviar_em', table_name='notificacoes_agendadas')
    op.drop_table('notificacoes_agendadas')
    op.drop_table('contatos')
    op.drop_table('historico_os')
    op.drop_table('pecas_os')
    op.drop_table('ordens_servico')
    op.drop_table('mensagens_whatsapp')
    op.drop_table('conversas_whatsapp')
    op.drop_table('usuarios')
