#repos/models.py

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Integer,
    JSON,
    Boolean,
    Text,
    Numeric,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.ext.mutable import MutableDict

from utils.clock import utcnow

Base = declarative_base()


class SerializableMixin:
    """Plain-dict view of a row, JSON-safe (Decimal -> float, datetime -> ISO)."""

    def to_dict(self) -> dict:
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, Decimal):
                value = float(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            data[column.key] = value
        return data


class User(SerializableMixin, Base):
    __tablename__ = "usuarios"

    id = Column(Integer, primary_key=True, autoincrement=True)
    telefone = Column(String, unique=True, nullable=False)
    nome = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Conversation(SerializableMixin, Base):
    __tablename__ = "conversas_whatsapp"
    __table_args__ = (UniqueConstraint("usuario_id", "chat_id"), )

    id = Column(Integer, primary_key=True, autoincrement=True)
    usuario_id = Column(Integer,
                        ForeignKey("usuarios.id", ondelete="CASCADE"),
                        nullable=False)
    chat_id = Column(String, nullable=False)
    remote_jid = Column(String, nullable=True)
    ultima_mensagem_em = Column(DateTime, default=utcnow)
    total_mensagens = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class Message(SerializableMixin, Base):
    __tablename__ = "mensagens_whatsapp"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversa_id = Column(Integer,
                         ForeignKey("conversas_whatsapp.id",
                                    ondelete="CASCADE"),
                         nullable=False)
    message_id = Column(String, nullable=True)
    tipo_mensagem = Column(String, default="text", nullable=False)
    conteudo_texto = Column(Text, nullable=True)
    from_me = Column(Boolean, default=False, nullable=False)
    metadados = Column(MutableDict.as_mutable(JSON), default=dict)
    criado_em = Column(DateTime, default=utcnow)


class ServiceOrder(SerializableMixin, Base):
    __tablename__ = "ordens_servico"

    id = Column(Integer, primary_key=True, autoincrement=True)
    numero_os = Column(String, unique=True, nullable=False)
    usuario_id = Column(Integer,
                        ForeignKey("usuarios.id", ondelete="CASCADE"),
                        nullable=False)
    cliente_nome = Column(String, nullable=False)
    cliente_telefone = Column(String, nullable=True)
    cliente_email = Column(String, nullable=True)
    cliente_endereco = Column(String, nullable=True)
    titulo = Column(String, nullable=False)
    descricao = Column(Text, nullable=True)
    categoria = Column(String, default="outro", nullable=False)
    prioridade = Column(String, default="normal", nullable=False)
    status = Column(String, default="aberta", nullable=False)
    valor_estimado = Column(Numeric(12, 2), nullable=True)
    valor_final = Column(Numeric(12, 2), nullable=True)
    valor_pecas = Column(Numeric(12, 2), default=0, nullable=False)
    data_abertura = Column(DateTime, default=utcnow)
    data_previsao = Column(DateTime, nullable=True)
    data_conclusao = Column(DateTime, nullable=True)
    tecnico_responsavel = Column(String, nullable=True)
    observacoes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    pecas = relationship("ServiceOrderPart",
                         back_populates="ordem_servico",
                         cascade="all, delete-orphan",
                         lazy="selectin")


class ServiceOrderPart(SerializableMixin, Base):
    __tablename__ = "pecas_os"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ordem_servico_id = Column(Integer,
                              ForeignKey("ordens_servico.id",
                                         ondelete="CASCADE"),
                              nullable=False)
    descricao = Column(String, nullable=False)
    codigo = Column(String, nullable=True)
    quantidade = Column(Integer, default=1, nullable=False)
    valor_unitario = Column(Numeric(12, 2), default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    ordem_servico = relationship("ServiceOrder", back_populates="pecas")


class ServiceOrderHistory(SerializableMixin, Base):
    __tablename__ = "historico_os"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ordem_servico_id = Column(Integer,
                              ForeignKey("ordens_servico.id",
                                         ondelete="CASCADE"),
                              nullable=False)
    usuario_id = Column(Integer, ForeignKey("usuarios.id"), nullable=True)
    tipo_evento = Column(String, nullable=False)
    descricao = Column(Text, nullable=True)
    dados_anteriores = Column(JSON, nullable=True)
    dados_novos = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class Contact(SerializableMixin, Base):
    __tablename__ = "contatos"
    __table_args__ = (UniqueConstraint("usuario_id", "telefone"), )

    id = Column(Integer, primary_key=True, autoincrement=True)
    usuario_id = Column(Integer,
                        ForeignKey("usuarios.id", ondelete="CASCADE"),
                        nullable=False)
    nome = Column(String, nullable=False)
    telefone = Column(String, nullable=False)
    email = Column(String, nullable=True)
    observacoes = Column(Text, nullable=True)
    favorito = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ScheduledNotification(SerializableMixin, Base):
    __tablename__ = "notificacoes_agendadas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    usuario_id = Column(Integer,
                        ForeignKey("usuarios.id", ondelete="CASCADE"),
                        nullable=False)
    ordem_servico_id = Column(Integer,
                              ForeignKey("ordens_servico.id",
                                         ondelete="SET NULL"),
                              nullable=True)
    tipo = Column(String, default="custom", nullable=False)
    destinatario_telefone = Column(String, nullable=False)
    destinatario_nome = Column(String, nullable=True)
    titulo = Column(String, nullable=False)
    mensagem = Column(Text, nullable=False)
    enviar_pdf = Column(Boolean, default=False, nullable=False)
    anexo_url = Column(String, nullable=True)
    data_agendada = Column(DateTime, nullable=False)
    enviar_em = Column(DateTime, nullable=False, index=True)
    # pendente | enviada | erro | cancelada
    status = Column(String, default="pendente", nullable=False, index=True)
    enviada_em = Column(DateTime, nullable=True)
    erro_mensagem = Column(Text, nullable=True)
    tentativas = Column(Integer, default=0, nullable=False)
    recorrente = Column(Boolean, default=False, nullable=False)
    intervalo_dias = Column(Integer, nullable=True)
    proxima_execucao = Column(DateTime, nullable=True)
    metadados = Column(MutableDict.as_mutable(JSON), default=dict)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    ordem_servico = relationship("ServiceOrder", lazy="selectin")


class AutomationTrigger(SerializableMixin, Base):
    __tablename__ = "triggers_automaticos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    usuario_id = Column(Integer,
                        ForeignKey("usuarios.id", ondelete="CASCADE"),
                        nullable=False)
    tipo_evento = Column(String, nullable=False)
    condicoes = Column(MutableDict.as_mutable(JSON), default=dict)
    tipo_acao = Column(String, nullable=False)
    parametros_acao = Column(MutableDict.as_mutable(JSON), default=dict)
    ativo = Column(Boolean, default=True, nullable=False)
    execucoes = Column(Integer, default=0, nullable=False)
    ultima_execucao = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class Lead(SerializableMixin, Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    telefone = Column(String, nullable=True)
    feedback = Column(Text, nullable=True)
    origem = Column(String, default="landing_page", nullable=False)
    # novo | contatado | convertido
    status = Column(String, default="novo", nullable=False)
    convertido_em_usuario = Column(Boolean, default=False, nullable=False)
    primeira_mensagem_enviada = Column(Boolean, default=False, nullable=False)
    data_primeira_mensagem = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class LegacyOrder(SerializableMixin, Base):
    """Simple order record behind the REST /api/os endpoints."""
    __tablename__ = "orders_service"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_name = Column(String,
                         default="Cliente não informado",
                         nullable=False)
    client_phone = Column(String, nullable=True)
    services = Column(JSON, default=list, nullable=False)
    total_amount = Column(Numeric(12, 2), default=0, nullable=False)
    # pendente | em_andamento | concluida
    status = Column(String, default="pendente", nullable=False)
    notes = Column(Text, nullable=True)
    pdf_path = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
