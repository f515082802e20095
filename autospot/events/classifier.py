"""
Event classifier turning raw inbound payloads into typed triggers.

Payloads arrive either as CloudWatch/EventBridge events or as SNS
notifications whose message body embeds such an event.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .triggers import CronTrigger, InstanceStateChangeTrigger, SpotInterruptionTrigger, Trigger
from ..core.exceptions import MalformedEventError


logger = logging.getLogger(__name__)

SPOT_INTERRUPTION_WARNING = "EC2 Spot Instance Interruption Warning"
INSTANCE_STATE_CHANGE = "EC2 Instance State-change Notification"

RawPayload = Optional[Union[str, bytes, bytearray, Dict[str, Any]]]


class SNSMessage(BaseModel):
    model_config = ConfigDict(extra='ignore')

    message: str = Field(validation_alias=AliasChoices('Message', 'message'))


class SNSRecord(BaseModel):
    model_config = ConfigDict(extra='ignore')

    sns: SNSMessage = Field(validation_alias=AliasChoices('Sns', 'SNS', 'sns'))


class SNSEnvelope(BaseModel):
    """SNS notification as delivered to a Lambda function."""
    model_config = ConfigDict(extra='ignore')

    records: Optional[List[SNSRecord]] = Field(
        default=None, validation_alias=AliasChoices('Records', 'records')
    )


class CloudWatchEvent(BaseModel):
    """EventBridge (CloudWatch Events) envelope."""
    model_config = ConfigDict(extra='ignore')

    detail_type: str = Field(validation_alias=AliasChoices('detail-type', 'DetailType'))
    region: str = Field(default="", validation_alias=AliasChoices('region', 'Region'))
    detail: Dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices('detail', 'Detail'))


def _decode(payload: Any, stage: str) -> Any:
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedEventError(f"Could not decode {stage} payload as UTF-8: {e}")
    if isinstance(payload, str):
        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedEventError(f"Could not decode {stage} payload: {e}", details=payload)
    return payload


def _unwrap_sns(document: Any) -> Any:
    """Replace an SNS envelope by the message embedded in its first record."""
    if not isinstance(document, dict):
        return document
    try:
        envelope = SNSEnvelope.model_validate(document)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid SNS notification: {e}", details=str(e))
    if not envelope.records:
        return document
    if len(envelope.records) > 1:
        logger.warning(f"SNS notification carries {len(envelope.records)} records, only the first one is processed")
    return _decode(envelope.records[0].sns.message, 'SNS message')


def _instance_id(event: CloudWatchEvent) -> str:
    instance_id = event.detail.get('instance-id')
    if not instance_id or not isinstance(instance_id, str):
        raise MalformedEventError(f"{event.detail_type} event without an instance ID", details=json.dumps(event.detail))
    return instance_id


def classify_event(payload: RawPayload) -> Trigger:
    """Classify a raw inbound payload into exactly one trigger.
    
    Args:
        payload: Raw JSON text, bytes, an already decoded mapping, or None
        
    Returns:
        The classified trigger. Unknown events fall back to CronTrigger.
        
    Raises:
        MalformedEventError: If the payload cannot be decoded, or a recognised
            event lacks its instance data
    """
    if payload is None:
        logger.info("Missing event data, running as if triggered from a cron event")
        return CronTrigger()
    
    logger.debug(f"Received event: {payload!r}")
    
    document = _unwrap_sns(_decode(payload, 'event'))
    
    if not isinstance(document, dict):
        logger.info("Event is not a JSON object, running the periodic scan")
        return CronTrigger()
    
    try:
        event = CloudWatchEvent.model_validate(document)
    except ValidationError:
        logger.info("Event is not an instance lifecycle event, running the periodic scan")
        return CronTrigger()
    
    if event.detail_type == SPOT_INTERRUPTION_WARNING:
        logger.info(f"Triggered by {event.detail_type}")
        return SpotInterruptionTrigger(region=event.region, instance_id=_instance_id(event))
    
    if event.detail_type == INSTANCE_STATE_CHANGE:
        logger.info(f"Triggered by {event.detail_type}")
        instance_id = _instance_id(event)
        state = event.detail.get('state')
        if not state or not isinstance(state, str):
            raise MalformedEventError(f"State-change event for {instance_id} without a state")
        return InstanceStateChangeTrigger(region=event.region, instance_id=instance_id, new_state=state)
    
    logger.info(f"Unhandled event type '{event.detail_type}', running the periodic scan")
    return CronTrigger()
